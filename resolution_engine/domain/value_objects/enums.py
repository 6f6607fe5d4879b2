"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class TicketStatus(str, Enum):
    WAITLIST = "waitlist"
    OPEN = "open"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    RESOLVED = "resolved"
    CLOSED = "closed"


# Statuses that count towards a resolver's active load
ACTIVE_STATUSES = frozenset({TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS})


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ClassificationSource(str, Enum):
    RULES = "rules"
    RULES_REEVAL = "rules_reeval"
    MANUAL = "manual"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SkillGroupCode(str, Enum):
    TECHNICAL = "technical"
    PLUMBING = "plumbing"
    VENDOR = "vendor"
    SOFT_SERVICES = "soft_services"


class Role(str, Enum):
    MASTER_ADMIN = "master_admin"
    ORG_ADMIN = "org_admin"
    PROPERTY_ADMIN = "property_admin"
    MST = "mst"
    STAFF = "staff"
    SECURITY = "security"
    TENANT = "tenant"


class ActivityAction(str, Enum):
    CREATED = "created"
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    CLASSIFICATION_OVERRIDE = "classification_override"
    RECLASSIFIED = "reclassified"
    SLA_PAUSED = "sla_paused"
    SLA_RESUMED = "sla_resumed"
    STATUS_CHANGE = "status_change"
    REASSIGNED = "reassigned"
    RATED = "rated"
    PHOTO_BEFORE_UPLOADED = "photo_before_uploaded"
    PHOTO_AFTER_UPLOADED = "photo_after_uploaded"


class NotificationEvent(str, Enum):
    ASSIGNED = "assigned"
    WAITLISTED = "waitlisted"
    COMPLETED = "completed"


class PhotoKind(str, Enum):
    BEFORE = "before"
    AFTER = "after"


class ShiftStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
