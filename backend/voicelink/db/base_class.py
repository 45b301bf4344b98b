from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Naming convention shared by every table so Alembic emits stable constraint names
# on both PostgreSQL and SQLite.
convention = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_N_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata_obj = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """
    Base class for all VoiceLink models.
    Carries the shared MetaData object with the naming convention.
    """

    metadata = metadata_obj
