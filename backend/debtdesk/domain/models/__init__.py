from debtdesk.domain.models.enums import (
    ActivityType,
    CasePriority,
    CaseStatus,
    FieldType,
    PaymentMethod,
    PaymentStatus,
    PolicyCategory,
    PortfolioType,
    RecordSource,
)
from debtdesk.domain.models.record import FIELD_ALIASES, Record, parse_timestamp, utcnow

__all__ = [
    "ActivityType",
    "CasePriority",
    "CaseStatus",
    "FieldType",
    "PaymentMethod",
    "PaymentStatus",
    "PolicyCategory",
    "PortfolioType",
    "RecordSource",
    "FIELD_ALIASES",
    "Record",
    "parse_timestamp",
    "utcnow",
]
