import logging

from app.db.models import Base
from app.db.session import engine as default_engine

logger = logging.getLogger(__name__)


def init_db(engine=None):
    """Crear las tablas de posts, categorías y autores si no existen"""
    engine = engine or default_engine
    Base.metadata.create_all(bind=engine)
    logger.info("Tablas de la base de datos verificadas")


if __name__ == "__main__":
    init_db()
