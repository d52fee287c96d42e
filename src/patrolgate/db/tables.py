"""SQLAlchemy table definitions."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from patrolgate.db.base import Base
from patrolgate.models.enums import ChangeType


class PageTable(Base):
    """Pages table - content repository pages."""

    __tablename__ = "pages"

    page_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    latest_revision_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class RevisionTable(Base):
    """Revisions table - immutable page versions."""

    __tablename__ = "revisions"

    revision_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("pages.page_id", ondelete="CASCADE"), nullable=False
    )
    parent_revision_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    flags: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("idx_revisions_page", "page_id", "revision_id"),)


class ChangeTable(Base):
    """Changes table - the recent changes feed patrollers work through."""

    __tablename__ = "changes"

    change_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("pages.page_id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    change_type: Mapped[ChangeType] = mapped_column(
        Enum(ChangeType), nullable=False, default=ChangeType.EDIT
    )
    is_bot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    patrolled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    patrolled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    previous_revision_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    revision_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        # Index for queue selection
        Index("idx_changes_patrol_queue", "patrolled", "is_bot", "change_type", "change_id"),
    )


class ReviewerTable(Base):
    """Reviewers table - patrol rights and blocks."""

    __tablename__ = "reviewers"

    reviewer_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    can_patrol: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class LeaseTable(Base):
    """Patrol leases table - one claim row per change."""

    __tablename__ = "patrol_leases"

    # Primary key is the claim: a second insert for the same change is a no-op
    change_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        # Index for expiry sweeps
        Index("idx_patrol_leases_claimed", "claimed_at"),
    )
