"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resolution_engine.adapters.persistence.database import Base


class SkillGroupModel(Base):
    __tablename__ = "skill_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    categories: Mapped[list["IssueCategoryModel"]] = relationship(back_populates="skill_group")


class IssueCategoryModel(Base):
    __tablename__ = "issue_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    skill_group_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("skill_groups.id"), nullable=True
    )
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    sla_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)

    skill_group: Mapped["SkillGroupModel | None"] = relationship(back_populates="categories")


class TicketModel(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_number: Mapped[str | None] = mapped_column(String(30), unique=True, nullable=True)
    property_id: Mapped[str] = mapped_column(String(64), nullable=False)
    organization_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    raised_by: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")

    # Classification
    issue_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    skill_group_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("issue_categories.id"), nullable=True
    )
    skill_group_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("skill_groups.id"), nullable=True
    )
    confidence: Mapped[str] = mapped_column(String(10), nullable=False)
    confidence_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    classification_source: Mapped[str] = mapped_column(String(20), nullable=False, default="rules")
    is_vague: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    floor_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Assignment
    assigned_to: Mapped[str | None] = mapped_column(String(64), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    work_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # SLA
    sla_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    sla_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sla_paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sla_paused_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sla_pause_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_paused_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Feedback & evidence
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    photo_before_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    photo_after_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    activity: Mapped[list["ActivityLogModel"]] = relationship(
        back_populates="ticket", order_by="ActivityLogModel.id"
    )

    __table_args__ = (
        Index("idx_tickets_property_status", "property_id", "status"),
        Index("idx_tickets_assigned_to", "assigned_to"),
    )


class ActivityLogModel(Base):
    __tablename__ = "ticket_activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    ticket: Mapped["TicketModel"] = relationship(back_populates="activity")

    __table_args__ = (Index("idx_activity_ticket", "ticket_id"),)


class ResolverStatModel(Base):
    __tablename__ = "resolver_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    property_id: Mapped[str] = mapped_column(String(64), nullable=False)
    skill_group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("skill_groups.id"), nullable=False
    )
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    current_floor: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_resolved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_resolution_minutes: Mapped[float] = mapped_column(Float, nullable=False, default=60.0)
    last_assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "property_id", "skill_group_id", name="uq_resolver_stats_user_property_group"),
        Index("idx_resolver_stats_pool", "property_id", "skill_group_id", "is_available"),
    )


class ShiftLogModel(Base):
    __tablename__ = "shift_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    property_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    check_in_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    check_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_shift_logs_user_property", "user_id", "property_id", "status"),)


class PropertyMembershipModel(Base):
    """Owned by the identity provider; read only here."""

    __tablename__ = "property_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    property_id: Mapped[str] = mapped_column(String(64), nullable=False)
    role: Mapped[str] = mapped_column(String(30), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (UniqueConstraint("user_id", "property_id", name="uq_memberships_user_property"),)


class UserSkillModel(Base):
    """Owned by the identity provider; read only here."""

    __tablename__ = "user_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    skill_code: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "skill_code", name="uq_user_skills_user_code"),)
