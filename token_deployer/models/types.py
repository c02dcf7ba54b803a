# token_deployer/models/types.py
from sqlalchemy.types import TypeDecorator
from sqlalchemy import JSON

class JSONBCompat(TypeDecorator):
    """
    JSONB en PostgreSQL, JSON genérico en SQLite y otros.
    Los mismos modelos funcionan en tests (sqlite://) y en producción.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import JSONB
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())
