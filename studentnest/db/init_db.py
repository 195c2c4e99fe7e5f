"""Schema bootstrap for development databases (production uses migrations)."""
from sqlalchemy.engine import Engine

from studentnest.core.logging import get_logger
from studentnest.db.base import Base, import_models

logger = get_logger(__name__)


def init_db(bind: Engine) -> None:
    import_models()
    Base.metadata.create_all(bind=bind)
    logger.info("Database schema ensured", extra={"tables": sorted(Base.metadata.tables)})
