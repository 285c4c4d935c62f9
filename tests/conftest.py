from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.init_db import init_db
from app.db.models import Author, Category, DRAFT_SENTINEL, Post, PostCategory, PostType
from app.posts.service import PostService

BASE_DATE = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db):
    return PostService(db)


@pytest.fixture
def author(db):
    return make_author(db, "ana", "Ana Torres", "ana@example.com")


@pytest.fixture
def admin(db):
    return make_author(db, "root", "Admin", "admin@example.com", is_admin=True)


def make_author(db, user_name, display_name, email, avatar=None, is_admin=False):
    author = Author(
        app_user_name=user_name,
        display_name=display_name,
        email=email,
        avatar=avatar,
        is_admin=is_admin,
    )
    db.add(author)
    db.commit()
    return author


def make_category(db, label):
    category = Category(content=label)
    db.add(category)
    db.commit()
    return category


def make_post(
    db,
    author,
    slug,
    title=None,
    description="",
    content="",
    published_days=None,
    featured=False,
    views=0,
    post_type=PostType.POST,
    categories=(),
):
    """Inserta un post; published_days=None lo deja como borrador"""
    published_at = DRAFT_SENTINEL if published_days is None else BASE_DATE + timedelta(days=published_days)
    post = Post(
        slug=slug,
        title=title or slug.replace("-", " ").title(),
        description=description,
        content=content,
        published_at=published_at,
        is_featured=featured,
        views=views,
        post_type=post_type,
        author_id=author.id,
    )
    post.post_categories = [PostCategory(category=c) for c in categories]
    db.add(post)
    db.commit()
    return post
