import re
import unicodedata
from typing import Optional

import bleach

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script\s*>|<script[^>]*/?>", re.IGNORECASE | re.DOTALL)

# Etiquetas permitidas en descripción y contenido; <script> e <img> quedan fuera
ALLOWED_TAGS = set(bleach.sanitizer.ALLOWED_TAGS) | {
    "p", "br", "hr", "span", "div", "pre", "u", "s", "sub", "sup", "del", "ins",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "table", "thead", "tbody", "tfoot", "tr", "th", "td", "caption",
    "figure", "figcaption", "dl", "dt", "dd",
}
ALLOWED_ATTRIBUTES = {
    "*": ["class", "id", "title"],
    "a": ["href", "title", "rel", "target"],
    "th": ["colspan", "rowspan"],
    "td": ["colspan", "rowspan"],
}


def to_slug(title: str) -> str:
    """Convierte un título en un slug URL-safe en minúsculas"""
    # Quitar acentos antes de filtrar caracteres
    value = unicodedata.normalize("NFKD", title or "").encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9\s-]", "", value.lower())
    slug = re.sub(r"[\s-]+", "-", slug).strip("-")
    return slug


def remove_script_tags(html: Optional[str]) -> Optional[str]:
    """Elimina bloques <script> con su contenido, repitiendo hasta que no quede ninguno"""
    if not html:
        return html
    previous = None
    while html != previous:
        previous = html
        html = _SCRIPT_RE.sub("", html)
    return html


def sanitize_html(html: Optional[str]) -> Optional[str]:
    """Elimina etiquetas <script> e <img> de un campo HTML"""
    if not html:
        return html
    return bleach.clean(
        remove_script_tags(html),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True,
    )
