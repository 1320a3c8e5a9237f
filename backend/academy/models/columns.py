"""Column helpers shared by every table model."""

import uuid
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column


def uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()"))


def created_at() -> Mapped[datetime]:
    return mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=text("now()"))


def updated_at() -> Mapped[datetime]:
    # Kept current by the `set_updated_at` trigger installed in the initial migration.
    return mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=text("now()"))


def one_of(column: str, values) -> str:
    """CHECK expression restricting `column` to `values`."""
    return f"{column} IN ({', '.join(repr(v) for v in values)})"
