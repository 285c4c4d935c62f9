import enum
import math
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, PrivateAttr, computed_field, validator

from app.core.config import settings
from app.db.models import DRAFT_SENTINEL, PostType
from app.posts.utils import to_slug


class PublishedStatus(str, enum.Enum):
    PUBLISHED = "published"
    DRAFTS = "drafts"
    FEATURED = "featured"
    ALL = "all"


# Letras del include mask (GetFilteredSet / search)
POST_DRAFT = "D"
POST_FEATURED = "F"
POST_PUBLISHED = "P"


# --- Schemas de entrada ---
class PostBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=160)
    description: str = ""
    content: str = ""
    cover: Optional[str] = None
    post_type: PostType = PostType.POST
    published_at: datetime = DRAFT_SENTINEL


class PostCreate(PostBase):
    slug: Optional[str] = Field(None, max_length=160)
    author_id: int
    is_featured: bool = False
    rating: int = 0
    category_ids: List[int] = []

    @validator("slug")
    def validate_slug(cls, v):
        if v and v != to_slug(v):
            raise ValueError("El slug solo puede contener letras minúsculas, números y guiones")
        return v


class PostUpdate(PostBase):
    """Campos que Update sobrescribe; el post se localiza por slug"""
    slug: str = Field(..., min_length=1, max_length=160)


# --- Schemas de salida ---
class AuthorInfo(BaseModel):
    id: int
    app_user_name: str
    display_name: str
    email: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    is_admin: bool = False

    class Config:
        from_attributes = True


class CategoryInfo(BaseModel):
    id: int
    content: str

    class Config:
        from_attributes = True


class PostItemSummary(BaseModel):
    """Vista plana de un post para listados y búsquedas"""
    id: int
    post_type: PostType
    slug: str
    title: str
    description: str = ""
    content: str = ""
    cover: Optional[str] = None
    views: int = 0
    rating: int = 0
    published_at: datetime
    is_featured: bool = False
    author: Optional[AuthorInfo] = None
    categories: List[CategoryInfo] = []

    @property
    def is_published(self) -> bool:
        return self.published_at > DRAFT_SENTINEL


class Pager(BaseModel):
    """Ventana de paginación; las operaciones de listado la actualizan con el total real"""
    current_page: int = 1
    items_per_page: int = Field(default_factory=lambda: settings.ITEMS_PER_PAGE)
    total: int = 0
    total_pages: int = 0
    not_found: bool = False

    # Offset de la página pedida, fijado por configure antes de ajustar current_page
    _offset: Optional[int] = PrivateAttr(default=None)

    @computed_field
    @property
    def skip(self) -> int:
        if self._offset is not None:
            return self._offset
        return max(0, (self.current_page - 1) * self.items_per_page)

    @computed_field
    @property
    def newer(self) -> int:
        return self.current_page - 1

    @computed_field
    @property
    def older(self) -> int:
        return self.current_page + 1

    @computed_field
    @property
    def show_newer(self) -> bool:
        return self.current_page > 1

    @computed_field
    @property
    def show_older(self) -> bool:
        return self.total > self.current_page * self.items_per_page

    def configure(self, total: int) -> None:
        """Registra el total de items y ajusta la página actual al rango [1, total_pages].

        El offset se calcula con la página pedida: una página posterior a la
        última devuelve una lista vacía en lugar de repetir la última página.
        """
        if self.items_per_page <= 0:
            self.items_per_page = settings.ITEMS_PER_PAGE

        self._offset = max(0, (self.current_page - 1) * self.items_per_page)
        self.total = total
        self.total_pages = math.ceil(total / self.items_per_page)

        last_page = max(1, self.total_pages)
        self.not_found = self.current_page < 1 or self.current_page > last_page
        self.current_page = min(max(self.current_page, 1), last_page)

    def page(self, items: list) -> list:
        return items[self.skip:self.skip + self.items_per_page]


class PageListModel(BaseModel):
    posts: List[PostItemSummary]
    pager: Pager


class PostModel(BaseModel):
    """Detalle de un post con sus vecinos y posts relacionados"""
    post: PostItemSummary
    older: Optional[PostItemSummary] = None
    newer: Optional[PostItemSummary] = None
    related: List[PostItemSummary] = []
