from fastapi import Depends, Query, Request

from article_store.config import settings
from article_store.schemas import ContentVariant, Permission
from article_store.sessions import sessions


class PaginationParams:
    """
    Reusable FastAPI dependency that parses paging and variant query
    parameters.

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    page_size:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    variant:
        ``rendered`` (HTML) or ``raw`` (markdown source).
    """

    def __init__(
        self,
        page: int = Query(
            1,
            ge=1,
            description="Page number (1-based).",
        ),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            description="Number of items returned per page.",
        ),
        variant: ContentVariant = Query(
            ContentVariant.RENDERED,
            description="Content representation: 'rendered' or 'raw'.",
        ),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.variant = variant


def get_session_token(request: Request) -> str | None:
    """Session token from the session cookie, if the caller sent one."""
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_permission(
    request: Request,
    session_token: str | None = Depends(get_session_token),
) -> Permission:
    """
    Caller permission level.

    A gateway or middleware in front of the routes may pin it on
    ``request.state.permission``.  Otherwise it is the level stored in the
    caller's session record; callers without a resolvable session are
    unprivileged.
    """
    permission = getattr(request.state, "permission", None)
    if isinstance(permission, Permission):
        return permission
    if isinstance(permission, int):
        return Permission.from_level(permission)
    identity = await sessions.find_identity(session_token)
    if identity is None:
        return Permission.UNPRIVILEGED
    return Permission.from_level(identity.permission)


def get_visitor_ip(request: Request) -> str:
    """Best-effort client address, preferring proxy headers."""
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


def get_user_agent(request: Request) -> str:
    return request.headers.get("user-agent", "")
