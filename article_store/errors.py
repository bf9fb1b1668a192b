"""
Error taxonomy shared by the query and mutation services.

Services raise these; the HTTP layer maps each class to a status code via
the handlers registered in ``main.py``.  ``detail`` is the human-readable
message surfaced in the ``{"status": false, "error": ...}`` envelope.
"""


class ArticleStoreError(Exception):
    """Base error for the article store."""

    status_code: int = 500

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail


class NotFound(ArticleStoreError):
    """Raised when a point lookup matches zero visible rows."""

    status_code = 404


class ArticleNotFound(NotFound):
    def __init__(self, article_id) -> None:
        super().__init__(f"Article not found: {article_id}")
        self.article_id = article_id


class CommentNotFound(NotFound):
    def __init__(self, comment_id) -> None:
        super().__init__(f"Comment not found: {comment_id}")
        self.comment_id = comment_id


class StoreError(ArticleStoreError):
    """Raised when the underlying statement fails; wraps the driver message."""

    status_code = 500


class AuthResolutionError(ArticleStoreError):
    """Raised when a caller identity cannot be resolved from the session cache."""

    status_code = 401


class ValidationError(ArticleStoreError):
    """Raised when paging parameters are out of range."""

    status_code = 422


class Forbidden(ArticleStoreError):
    """Raised when the caller may not mutate the target row."""

    status_code = 403
