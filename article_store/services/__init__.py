# Services package.
#
# Each module exposes async functions that encapsulate business logic and
# database access for one aggregate:
#
#   article_service : section paging, variant reads, insert/edit/soft delete
#   comment_service : paged comments, append, permission-gated soft delete
#   stats_service   : article view records
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.
