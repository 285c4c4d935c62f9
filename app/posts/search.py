"""Ranking por palabras clave sobre un conjunto de posts en memoria.

Cada sub-término del query suma puntos al post:

- +10 por cada categoría cuya etiqueta coincide exactamente (sin mayúsculas)
- +10 por cada aparición en el título
- +3 por cada aparición en la descripción
- +1 por cada aparición en el contenido

Los sub-términos de menos de 4 caracteres se ignoran cuando el post ya tiene
puntos, para que palabras cortas no inflen un resultado ya encontrado.
"""
import re
from typing import Dict, Iterable, List, Tuple

from app.db.models import Post

SHORT_TERM_LENGTH = 4

CATEGORY_WEIGHT = 10
TITLE_WEIGHT = 10
DESCRIPTION_WEIGHT = 3
CONTENT_WEIGHT = 1


def split_terms(term: str) -> List[str]:
    """Separa el query en sub-términos en minúsculas (los vacíos se conservan)"""
    return re.split(r"\s", (term or "").lower())


def count_occurrences(text: str, term: str) -> int:
    """Apariciones no solapadas de term dentro de text, sin distinguir mayúsculas"""
    if not text or not term:
        return 0
    return text.lower().count(term)


def rank_post(post: Post, terms: List[str], category_labels: Iterable[str]) -> int:
    labels = [label.lower() for label in category_labels]
    rank = 0

    for term in terms:
        if not term:
            continue
        if len(term) < SHORT_TERM_LENGTH and rank > 0:
            continue

        rank += CATEGORY_WEIGHT * sum(1 for label in labels if label == term)
        rank += TITLE_WEIGHT * count_occurrences(post.title, term)
        rank += DESCRIPTION_WEIGHT * count_occurrences(post.description, term)
        rank += CONTENT_WEIGHT * count_occurrences(post.content, term)

    return rank


def rank_posts(
    posts: List[Post],
    term: str,
    labels_by_post: Dict[int, List[str]],
) -> List[Tuple[Post, int]]:
    """Devuelve (post, rank) con rank > 0, ordenados por rank descendente.

    El orden es estable: a igual rank se conserva el orden de entrada.
    """
    terms = split_terms(term)
    ranked = []
    for post in posts:
        rank = rank_post(post, terms, labels_by_post.get(post.id, []))
        if rank > 0:
            ranked.append((post, rank))

    ranked.sort(key=lambda item: item[1], reverse=True)
    return ranked
