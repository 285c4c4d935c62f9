import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Enum, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# Marca de "sin publicar": un post es borrador si published_at es igual a este valor
DRAFT_SENTINEL = datetime(1, 1, 1)


def utcnow() -> datetime:
    """Fecha actual en UTC sin tzinfo (mismo formato que se guarda en la base)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PostType(str, enum.Enum):
    POST = "post"
    PAGE = "page"


class PostState(str, enum.Enum):
    DRAFT = "draft"
    RELEASE = "release"


class Author(Base):
    __tablename__ = "authors"

    id = Column(Integer, primary_key=True, index=True)
    app_user_name = Column(String(160), unique=True, nullable=False)
    email = Column(String(255), nullable=False)
    display_name = Column(String(160), nullable=False)
    bio = Column(Text)
    avatar = Column(String(500))
    is_admin = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    # Relaciones
    posts = relationship("Post", back_populates="author")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(String(120), nullable=False)  # Etiqueta visible
    description = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    # Relaciones
    post_categories = relationship("PostCategory", back_populates="category", cascade="all, delete-orphan")


class PostCategory(Base):
    __tablename__ = "post_categories"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)

    # Relaciones
    post = relationship("Post", back_populates="post_categories")
    category = relationship("Category", back_populates="post_categories")

    # Constraint para evitar asociaciones duplicadas
    __table_args__ = (
        UniqueConstraint("post_id", "category_id", name="uq_post_category"),
    )


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    post_type = Column(Enum(PostType), nullable=False, default=PostType.POST)
    title = Column(String(160), nullable=False)
    slug = Column(String(160), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    cover = Column(String(500))
    views = Column(Integer, nullable=False, default=0)
    rating = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime, nullable=False, default=DRAFT_SENTINEL)

    author_id = Column(Integer, ForeignKey("authors.id"), nullable=False)

    created_at = Column(DateTime, default=utcnow)

    # Relaciones
    author = relationship("Author", back_populates="posts")
    post_categories = relationship("PostCategory", back_populates="post", cascade="all, delete-orphan")

    @property
    def state(self) -> PostState:
        if self.published_at is None or self.published_at == DRAFT_SENTINEL:
            return PostState.DRAFT
        return PostState.RELEASE

    @property
    def is_published(self) -> bool:
        return self.state == PostState.RELEASE
