"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    MANAGER_REVIEW = "manager_review"
    EDITING = "editing"
    DELIVERED = "delivered"
    ACCEPTED_BY_CLIENT = "accepted_by_client"
    PAID = "paid"
    COMPLETED = "completed"
    REVISION_PENDING = "revision_pending"
    CANCELLED = "cancelled"


class WorkType(str, Enum):
    ORDINARY = "ordinary"
    TECHNICAL = "technical"


class BidStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class LedgerReason(str, Enum):
    ASSIGNMENT_FEE = "assignment-fee"
    SUBMISSION_FEE = "submission-fee"
    WRITER_PAYOUT = "writer-payout"
    PLATFORM_MARGIN = "platform-margin"
    REVISION_CLAWBACK = "revision-clawback"


class ActorRole(str, Enum):
    CLIENT = "client"
    WRITER = "writer"
    MANAGER = "manager"
    ADMIN = "admin"
    SYSTEM = "system"
