from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # Sessions may be handed across threads by the web layer
        return {"connect_args": {"check_same_thread": False}}
    # Safer defaults for cloud DBs
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency que entrega una sesión por request y la cierra al terminar"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
