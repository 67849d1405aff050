from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Auth ---

class SignupRequest(BaseModel):
    email: EmailStr = Field(max_length=100)
    password: str = Field(min_length=1, max_length=128)
    name: str = Field(min_length=1, max_length=100)


class SigninRequest(BaseModel):
    email: EmailStr = Field(max_length=100)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"  # noqa: S105


class TokenPayload(BaseModel):
    user_id: int
    email: str | None = None
    exp: datetime


# --- User ---

class UserResponse(APIModel):
    id: int
    email: str
    name: str
    created_at: datetime
    updated_at: datetime


# --- Article ---

class ArticleCreate(APIModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=1000)
    content: str = Field(min_length=1)


class ArticleUpdate(APIModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1, max_length=1000)
    content: str | None = Field(None, min_length=1)


class ArticleResponse(APIModel):
    id: int
    title: str
    description: str
    content: str
    author: UserResponse
    created_at: datetime
    updated_at: datetime


class ArticleDeleteResponse(APIModel):
    article_id: int
    success: bool = True


# --- Pagination ---

class ArticlePage(APIModel):
    items: list[ArticleResponse]
    total: int
    page_index: int
    page_size: int
    pages: int
