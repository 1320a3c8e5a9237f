"""
Academy Backend: Visitor Submission Tables
===========================================

What:  Student registrations and contact messages. Anonymous visitors may
       insert rows; only admins may read, change or delete them.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base
from academy.models.columns import created_at, one_of, updated_at, uuid_pk
from academy.schemas.student import CLASS_TYPES, STUDENT_STATUSES


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint(one_of('"class"', CLASS_TYPES), name="class"),
        CheckConstraint(one_of("status", STUDENT_STATUSES), name="status"),
        CheckConstraint("age > 0", name="age_positive"),
        Index("ix_students_status", "status"),
    )

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    # `class` is reserved in Python, not in SQL.
    class_: Mapped[str] = mapped_column("class", String(20), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="pending")
    created_at: Mapped[datetime] = created_at()
    updated_at: Mapped[datetime] = updated_at()


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_is_read", "is_read"),)

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(Text)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    created_at: Mapped[datetime] = created_at()
