"""SQLAlchemy Base class for all models."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Root SQLAlchemy base class."""
    pass


def import_models():
    """Import all models to register them with Base.metadata."""
    from studentnest.models import booking, listing, negotiation, payment_transaction  # noqa: F401
