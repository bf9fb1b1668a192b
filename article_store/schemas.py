import enum
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# --- Enums ---

class ContentVariant(str, enum.Enum):
    """Which stored representation populates an output record's ``content``."""

    RENDERED = "rendered"
    RAW = "raw"


class Permission(str, enum.Enum):
    UNPRIVILEGED = "unprivileged"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @classmethod
    def from_level(cls, level: int | None) -> "Permission":
        """Map the legacy small-integer level (0 admin, 1 moderator) to a Permission."""
        if level == 0:
            return cls.ADMIN
        if level == 1:
            return cls.MODERATOR
        return cls.UNPRIVILEGED

    @property
    def is_elevated(self) -> bool:
        return self in (Permission.MODERATOR, Permission.ADMIN)


# --- Session identity ---

class SessionUser(BaseModel):
    """Identity record stored as JSON in the session hash by the login service."""

    id: uuid.UUID
    nickname: str = ""
    permission: int | None = None
    model_config = ConfigDict(extra="ignore")


# --- Article ---

class NewArticle(BaseModel):
    title: str = Field(max_length=300)
    raw_content: str
    section_id: uuid.UUID
    author_id: uuid.UUID
    tags: str = Field("", max_length=500)


class EditArticle(BaseModel):
    id: uuid.UUID
    title: str = Field(max_length=300)
    raw_content: str
    tags: str = Field("", max_length=500)


class EditArticleBody(BaseModel):
    title: str = Field(max_length=300)
    raw_content: str
    tags: str = Field("", max_length=500)


class DeleteArticle(BaseModel):
    article_id: uuid.UUID
    user_id: uuid.UUID


class ArticleResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    section_id: uuid.UUID
    author_id: uuid.UUID
    tags: str
    created_time: datetime
    status: int


class ArticleCreated(BaseModel):
    id: uuid.UUID


# --- Comment ---

class NewComment(BaseModel):
    author_id: uuid.UUID
    raw_content: str


class DeleteComment(BaseModel):
    comment_id: uuid.UUID
    user_id: uuid.UUID


class CommentResponse(BaseModel):
    id: uuid.UUID
    article_id: uuid.UUID
    author_id: uuid.UUID
    content: str
    created_time: datetime
    status: int


# --- Pagination ---

class ArticlePage(BaseModel):
    articles: list[ArticleResponse]
    total: int
    max_page: int
    page: int
    page_size: int


class CommentPage(BaseModel):
    comments: list[CommentResponse]
    total: int
    max_page: int
    page: int
    page_size: int


# --- Mutation results ---

class MutationStatus(BaseModel):
    status: bool


class RowsAffected(BaseModel):
    rows_affected: int


# --- Metrics ---

class MetricsResponse(BaseModel):
    articles_by_status: dict[str, int]
    total_comments: int
    total_views: int
    session_info: dict = {}
