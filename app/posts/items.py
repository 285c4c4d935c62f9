from typing import Dict, Iterable, List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import Author, Category, Post, PostCategory
from app.posts.schemas import AuthorInfo, CategoryInfo, PostItemSummary


class PostItemAssembler:
    """Convierte entidades Post en PostItemSummary.

    Autores y categorías se resuelven con una sola consulta por lote,
    no una por post.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_authors(self, author_ids: Iterable[int]) -> Dict[int, Author]:
        ids = set(author_ids)
        if not ids:
            return {}
        return {a.id: a for a in self.db.query(Author).filter(Author.id.in_(ids)).all()}

    def get_post_categories(self, post_ids: Iterable[int]) -> Dict[int, List[Category]]:
        """Categorías de cada post, indexadas por post_id"""
        ids = set(post_ids)
        result: Dict[int, List[Category]] = {post_id: [] for post_id in ids}
        if not ids:
            return result

        rows = (
            self.db.query(PostCategory.post_id, Category)
            .join(Category, Category.id == PostCategory.category_id)
            .filter(PostCategory.post_id.in_(ids))
            .order_by(Category.content)
            .all()
        )
        for post_id, category in rows:
            result[post_id].append(category)
        return result

    def to_summaries(self, posts: List[Post], sanitize: bool = False) -> List[PostItemSummary]:
        authors = self.get_authors(p.author_id for p in posts)
        categories = self.get_post_categories(p.id for p in posts)
        return [
            self._build(p, authors.get(p.author_id), categories.get(p.id, []), sanitize)
            for p in posts
        ]

    def to_summary(self, post: Post, sanitize: bool = False) -> PostItemSummary:
        return self.to_summaries([post], sanitize)[0]

    def _build(self, post: Post, author: Author, categories: List[Category], sanitize: bool) -> PostItemSummary:
        author_info = None
        if author is not None:
            author_info = AuthorInfo.model_validate(author)
            if not author_info.avatar:
                initial = author_info.display_name[:1].upper()
                author_info.avatar = settings.AVATAR_DATA_IMAGE.format(initial)
            if sanitize:
                author_info.email = settings.SANITIZED_EMAIL

        return PostItemSummary(
            id=post.id,
            post_type=post.post_type,
            slug=post.slug,
            title=post.title,
            description=post.description or "",
            content=post.content or "",
            cover=post.cover,
            views=post.views or 0,
            rating=post.rating or 0,
            published_at=post.published_at,
            is_featured=bool(post.is_featured),
            author=author_info,
            categories=[CategoryInfo.model_validate(c) for c in categories],
        )
