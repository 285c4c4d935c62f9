import logging
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import Author, Category, DRAFT_SENTINEL, Post, PostCategory, PostType, utcnow
from app.db.session import get_db
from app.posts.items import PostItemAssembler
from app.posts.schemas import (
    POST_DRAFT, POST_FEATURED, POST_PUBLISHED,
    PageListModel, Pager, PostCreate, PostItemSummary, PostModel, PostUpdate, PublishedStatus
)
from app.posts.search import rank_posts
from app.posts.utils import sanitize_html, to_slug

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, db: Session):
        self.db = db
        self.items = PostItemAssembler(db)

    def _commit(self) -> bool:
        """Confirma la transacción; ante un error de la base hace rollback y propaga"""
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error al guardar cambios en la base de datos: {e}")
            self.db.rollback()
            raise
        return True

    # --- Slugs ---

    def _slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Post.id).filter(Post.slug == slug)
        if exclude_id:
            query = query.filter(Post.id != exclude_id)
        return query.first() is not None

    def generate_slug(self, title: str, exclude_id: Optional[int] = None) -> str:
        """Genera un slug único a partir del título.

        Si el slug base está ocupado se prueba con los sufijos 2..SLUG_SUFFIX_LIMIT
        (sin separador: "mi-post2"). Si todos están ocupados se devuelve el slug
        base aunque colisione.
        """
        slug = to_slug(title)
        if not self._slug_taken(slug, exclude_id):
            return slug

        for i in range(2, settings.SLUG_SUFFIX_LIMIT + 1):
            candidate = f"{slug}{i}"
            if not self._slug_taken(candidate, exclude_id):
                return candidate

        logger.warning(f"Sin sufijos libres para el slug '{slug}', se devuelve sin modificar")
        return slug

    # --- CRUD ---

    def get_post_by_id(self, post_id: int) -> Optional[Post]:
        """Obtiene un post por ID"""
        return self.db.query(Post).filter(Post.id == post_id).first()

    def get_post_by_slug(self, slug: str) -> Optional[Post]:
        """Obtiene un post por slug"""
        return self.db.query(Post).filter(Post.slug == slug).first()

    def add(self, post_data: PostCreate) -> bool:
        """Crea un post; falla si el slug ya existe"""
        slug = post_data.slug or self.generate_slug(post_data.title)
        if not slug:
            logger.warning(f"No se puede generar un slug para el título: {post_data.title!r}")
            return False

        if self._slug_taken(slug):
            logger.warning(f"Ya existe un post con el slug: {slug}")
            return False

        post = Post(
            slug=slug,
            title=post_data.title,
            description=sanitize_html(post_data.description),
            content=sanitize_html(post_data.content),
            cover=post_data.cover,
            post_type=post_data.post_type,
            published_at=post_data.published_at,
            is_featured=post_data.is_featured,
            rating=post_data.rating,
            author_id=post_data.author_id,
            created_at=utcnow(),
        )

        # Asignar categorías
        if post_data.category_ids:
            categories = self.db.query(Category).filter(Category.id.in_(post_data.category_ids)).all()
            post.post_categories = [PostCategory(category=c) for c in categories]

        self.db.add(post)
        self._commit()
        logger.info(f"Post creado: {slug}")
        return True

    def update(self, post_data: PostUpdate) -> bool:
        """Actualiza un post existente localizado por slug.

        Solo se sobrescriben slug, título, descripción, contenido, portada,
        tipo y fecha de publicación; autor, categorías y destacado no cambian.
        """
        existing = self.get_post_by_slug(post_data.slug)
        if not existing:
            logger.warning(f"No existe un post con el slug: {post_data.slug}")
            return False

        existing.slug = post_data.slug
        existing.title = post_data.title
        existing.description = sanitize_html(post_data.description)
        existing.content = sanitize_html(post_data.content)
        existing.cover = post_data.cover
        existing.post_type = post_data.post_type
        existing.published_at = post_data.published_at

        return self._commit()

    def publish(self, post_id: int, publish: bool) -> bool:
        """Publica (fecha actual) o pasa a borrador (fecha centinela)"""
        existing = self.get_post_by_id(post_id)
        if not existing:
            return False

        existing.published_at = utcnow() if publish else DRAFT_SENTINEL
        return self._commit()

    def featured(self, post_id: int, featured: bool) -> bool:
        """Marca o desmarca un post como destacado"""
        existing = self.get_post_by_id(post_id)
        if not existing:
            return False

        existing.is_featured = featured
        return self._commit()

    def remove(self, post_id: int) -> bool:
        """Elimina un post y sus asociaciones con categorías"""
        existing = self.get_post_by_id(post_id)
        if not existing:
            return False

        self.db.delete(existing)
        self._commit()
        logger.info(f"Post eliminado: {post_id}")
        return True

    def increment_views(self, post_id: int) -> bool:
        """Incrementa el contador de vistas de un post"""
        updated = self.db.query(Post).filter(Post.id == post_id).update({
            Post.views: Post.views + 1
        })
        self._commit()
        return updated > 0

    # --- Consultas ---

    def get_posts(self, status: PublishedStatus, post_type: PostType = PostType.POST) -> List[Post]:
        """Posts de un tipo filtrados por estado de publicación"""
        query = self.db.query(Post).filter(Post.post_type == post_type)

        if status == PublishedStatus.PUBLISHED:
            query = query.filter(Post.published_at > DRAFT_SENTINEL).order_by(desc(Post.published_at))
        elif status == PublishedStatus.DRAFTS:
            query = query.filter(Post.published_at == DRAFT_SENTINEL).order_by(desc(Post.id))
        elif status == PublishedStatus.FEATURED:
            query = query.filter(Post.is_featured == True).order_by(desc(Post.id))
        else:
            query = query.order_by(desc(Post.id))

        return query.all()

    def get_filtered_set(self, include: str = "", author_id: int = 0) -> List[Post]:
        """Candidatos para listados y búsqueda.

        include combina las letras D (borradores), F (publicados destacados) y
        P (publicados no destacados); vacío incluye todo. Los borradores van
        primero en orden de almacenamiento, seguidos de los publicados
        (destacados o no) ordenados por fecha de publicación descendente.
        """
        mask = (include or "").upper()
        query = self.db.query(Post).filter(Post.post_type == PostType.POST)
        if author_id and author_id > 0:
            query = query.filter(Post.author_id == author_id)

        drafts: List[Post] = []
        published: List[Post] = []

        if not mask or POST_DRAFT in mask:
            drafts = query.filter(Post.published_at == DRAFT_SENTINEL).order_by(Post.id).all()

        if not mask or POST_FEATURED in mask:
            published += query.filter(
                Post.published_at > DRAFT_SENTINEL,
                Post.is_featured == True
            ).order_by(desc(Post.published_at)).all()

        if not mask or POST_PUBLISHED in mask:
            published += query.filter(
                Post.published_at > DRAFT_SENTINEL,
                Post.is_featured == False
            ).order_by(desc(Post.published_at)).all()

        published.sort(key=lambda p: p.published_at, reverse=True)
        return drafts + published

    def search_posts(self, term: str) -> List[Post]:
        """Posts cuyo título contiene el término; "*" devuelve todos"""
        if term == "*":
            return self.db.query(Post).all()

        return self.db.query(Post).filter(Post.title.ilike(f"%{term}%")).all()

    def search(
        self,
        pager: Pager,
        term: str,
        author_id: int = 0,
        include: str = "",
        sanitize: bool = False
    ) -> List[PostItemSummary]:
        """Búsqueda por relevancia con paginación.

        "*" no es un modo de búsqueda: devuelve todos los posts sin sanitizar
        (solo paginados). No exponer ese valor a entradas no confiables.
        """
        if term == "*":
            posts = self.db.query(Post).order_by(Post.id).all()
            pager.configure(len(posts))
            return self.items.to_summaries(pager.page(posts), sanitize=False)

        candidates = self.get_filtered_set(include, author_id)
        categories = self.items.get_post_categories(p.id for p in candidates)
        labels_by_post = {
            post_id: [c.content for c in cats] for post_id, cats in categories.items()
        }

        ranked = [post for post, _ in rank_posts(candidates, term, labels_by_post)]
        pager.configure(len(ranked))
        return self.items.to_summaries(pager.page(ranked), sanitize)

    def get_list(
        self,
        pager: Pager,
        author_id: int = 0,
        category: str = "",
        include: str = "",
        sanitize: bool = True
    ) -> List[PostItemSummary]:
        """Listado paginado, opcionalmente filtrado por etiqueta de categoría"""
        posts = self.get_filtered_set(include, author_id)

        if category:
            cat = self.db.query(Category).filter(
                func.lower(Category.content) == category.lower()
            ).first()
            if cat is None:
                posts = []
            else:
                post_ids = {
                    row.post_id for row in
                    self.db.query(PostCategory.post_id).filter(PostCategory.category_id == cat.id).all()
                }
                posts = [p for p in posts if p.id in post_ids]

        pager.configure(len(posts))
        return self.items.to_summaries(pager.page(posts), sanitize)

    def get_popular(self, pager: Pager, author_id: int = 0) -> List[PostItemSummary]:
        """Posts publicados ordenados por vistas"""
        query = self.db.query(Post).filter(Post.published_at > DRAFT_SENTINEL)
        if author_id and author_id > 0:
            query = query.filter(Post.author_id == author_id)

        query = query.order_by(desc(Post.views), desc(Post.published_at))

        pager.configure(query.count())
        posts = query.offset(pager.skip).limit(pager.items_per_page).all()
        return self.items.to_summaries(posts, sanitize=True)

    def get_post_items(self) -> List[PostItemSummary]:
        """Todos los posts como resumen, con portada por defecto si no tienen"""
        items = self.items.to_summaries(self.db.query(Post).all())
        for item in items:
            if not item.cover:
                item.cover = settings.DEFAULT_COVER
        return items

    def get_post_model(self, slug: str) -> Optional[PostModel]:
        """Detalle de un post con el anterior/siguiente publicado y posts relacionados.

        Cuenta una vista para el post.
        """
        all_posts = self.db.query(Post).order_by(
            desc(Post.is_featured),
            desc(Post.published_at)
        ).all()

        index = next((i for i, p in enumerate(all_posts) if p.slug == slug), None)
        if index is None:
            return None

        post = all_posts[index]
        newer = all_posts[index - 1] if index > 0 and all_posts[index - 1].is_published else None
        older = all_posts[index + 1] if index + 1 < len(all_posts) and all_posts[index + 1].is_published else None

        self.increment_views(post.id)

        neighbours = [p for p in (post, newer, older) if p is not None]
        items = {item.id: item for item in self.items.to_summaries(neighbours)}

        related = self.search(Pager(current_page=1), post.title, 0, POST_PUBLISHED + POST_FEATURED, True)

        return PostModel(
            post=items[post.id],
            newer=items[newer.id] if newer else None,
            older=items[older.id] if older else None,
            related=[r for r in related if r.id != post.id],
        )

    # --- Edición (autores y administradores) ---

    @staticmethod
    def can_edit(author: Author, post: Post) -> bool:
        """Un administrador edita cualquier post; un autor solo los suyos"""
        return bool(author.is_admin) or post.author_id == author.id

    def get_author_list(
        self,
        pager: Pager,
        author: Author,
        term: str = "",
        status: str = ""
    ) -> PageListModel:
        """Listado del panel de edición.

        Con término se hace una búsqueda; sin él se filtra por status
        ("P" publicados, "D" borradores, otro valor todos). Los autores que no
        son administradores solo ven sus propios posts.
        """
        author_id = 0 if author.is_admin else author.id

        if term:
            posts = self.search(pager, term, author_id)
            return PageListModel(posts=posts, pager=pager)

        query = self.db.query(Post)
        if author_id:
            query = query.filter(Post.author_id == author_id)

        if status == POST_PUBLISHED:
            query = query.filter(Post.published_at > DRAFT_SENTINEL)
        elif status == POST_DRAFT:
            query = query.filter(Post.published_at == DRAFT_SENTINEL)

        query = query.order_by(desc(Post.id))

        pager.configure(query.count())
        posts = query.offset(pager.skip).limit(pager.items_per_page).all()
        return PageListModel(posts=self.items.to_summaries(posts), pager=pager)


def get_post_service(db: Session = Depends(get_db)) -> PostService:
    """Factory function para obtener una instancia del servicio de posts"""
    return PostService(db)
