"""
Academy Backend: Declarative Base
==================================

What:  The SQLAlchemy base every table model registers with.
How:   Only Alembic connects to Postgres directly (through `database_url`);
       the running service talks to the hosted REST API instead. The
       naming convention keeps constraint names stable across migrations.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
