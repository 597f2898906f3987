"""
Enumeration definitions for debtdesk.

Organization:
- Repository Domain: RecordSource, PolicyCategory, FieldType
- Collections Domain: CaseStatus, CasePriority, PaymentStatus, ActivityType
"""

from enum import Enum


# ============================================================================
# Repository Domain
# ============================================================================

class RecordSource(str, Enum):
    """Which store produced a record on a given read."""

    REMOTE = "remote"
    LOCAL = "local"


class PolicyCategory(str, Enum):
    """Reconciliation category of an entity."""

    REMOTE_PRIMARY = "remote_primary"
    LOCAL_ONLY = "local_only"
    HYBRID = "hybrid"


class FieldType(str, Enum):
    """Advisory field types used for input validation."""

    STRING = "string"
    NUMBER = "number"
    TIMESTAMP = "timestamp"
    ENUM = "enum"
    BOOLEAN = "boolean"


# ============================================================================
# Collections Domain
# ============================================================================

class CaseStatus(str, Enum):
    """Lifecycle status of a debt case."""

    NEW = "new"
    IN_COLLECTION = "in_collection"
    PAYMENT_PLAN = "payment_plan"
    PAID = "paid"
    SETTLED = "settled"
    DISPUTED = "disputed"
    LEGAL_ACTION = "legal_action"
    CREDIT_REPORTING = "credit_reporting"
    BANKRUPTCY = "bankruptcy"
    DECEASED = "deceased"
    MILITARY = "military"
    BUYBACK = "buyback"
    UNCOLLECTIBLE = "uncollectible"


class CasePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    ACH = "ach"
    CHECK = "check"
    CASH = "cash"
    WIRE = "wire"
    MONEY_ORDER = "money_order"


class PortfolioType(str, Enum):
    COMMITTED = "committed"
    SPEC = "spec"


class ActivityType(str, Enum):
    """Kinds of audit entries written to activity_logs."""

    ACCOUNT_CREATED = "account_created"
    DVN_SENT = "dvn_sent"
    STATUS_CHANGE = "status_change"
