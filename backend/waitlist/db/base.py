"""SQLAlchemy Declarative Base - metadata shared by the ORM and alembic.

Invariants:
    - Constraint and index names are deterministic (naming convention below),
      so ORM metadata and migrations agree on names such as
      uq_subscriptions_email and ix_subscriptions_token
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
