"""Task ORM model. Subtasks reference their parent; recurring tasks share a series id."""

from datetime import date

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import TimestampMixin


class Task(TimestampMixin, Base):
    """Task record. Table: task. project_id points at the external project table."""

    __tablename__ = "task"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="pending", server_default="pending"
    )
    priority: Mapped[int] = mapped_column(
        Integer, nullable=False, default=5, server_default="5"
    )
    project_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("task.id", ondelete="CASCADE"), nullable=True, index=True
    )
    assigned_to: Mapped[list[int]] = mapped_column(
        ARRAY(Integer), nullable=False, default=list, server_default="{}"
    )
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(100)), nullable=False, default=list, server_default="{}"
    )
    deadline: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    recurrence_freq: Mapped[str | None] = mapped_column(String(16), nullable=True)
    recurrence_interval: Mapped[int | None] = mapped_column(Integer, nullable=True)
    recurrence_series_id: Mapped[str | None] = mapped_column(
        String, nullable=True, index=True
    )
    archived: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )

    __table_args__ = (
        CheckConstraint("priority BETWEEN 1 AND 10", name="ck_task_priority_range"),
        CheckConstraint(
            "recurrence_freq IS NULL OR recurrence_interval >= 1",
            name="ck_task_recurrence_interval",
        ),
        Index("ix_task_project_archived", "project_id", "archived"),
        Index("ix_task_assigned_to", "assigned_to", postgresql_using="gin"),
    )
