import os
from pydantic_settings import BaseSettings


def _resolve_database_url() -> str:
    """Resolve DATABASE_URL from common env var patterns.

    Priority:
    1) DATABASE_URL
    2) POSTGRES_URL
    3) Construct from PG* variables (PGHOST, PGPORT, PGUSER, PGPASSWORD, PGDATABASE)
    Fallback to a local sqlite file as last resort.
    """
    url = os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL")
    if not url:
        host = os.getenv("PGHOST")
        user = os.getenv("PGUSER")
        password = os.getenv("PGPASSWORD")
        db = os.getenv("PGDATABASE")
        port = os.getenv("PGPORT", "5432")
        if all([host, user, password, db]):
            url = f"postgresql://{user}:{password}@{host}:{port}/{db}"
            sslmode = os.getenv("PGSSLMODE") or os.getenv("DB_SSLMODE")
            if sslmode:
                sep = "?" if "?" not in url else "&"
                url = f"{url}{sep}sslmode={sslmode}"
    # Final fallback (local dev)
    return url or "sqlite:///./blog.db"


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = _resolve_database_url()

    # Listings
    ITEMS_PER_PAGE: int = 10
    SLUG_SUFFIX_LIMIT: int = 99

    # Public summaries
    SANITIZED_EMAIL: str = "donotreply@us.com"
    DEFAULT_COVER: str = "img/cover.png"
    # {0} is replaced with the author's initial
    AVATAR_DATA_IMAGE: str = (
        "data:image/svg+xml;utf8,<svg xmlns='http://www.w3.org/2000/svg' width='60' height='60'>"
        "<rect width='100%' height='100%' fill='#7b8a9e'/>"
        "<text x='50%' y='50%' dy='.35em' text-anchor='middle' fill='#fff' "
        "font-family='sans-serif' font-size='28'>{0}</text></svg>"
    )

    # Environment: development | staging | production
    ENV: str = "development"

    class Config:
        env_file = ".env"


settings = Settings()
