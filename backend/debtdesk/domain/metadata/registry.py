"""
Entity registry.

Binds every entity name to its reconciliation category and an advisory
field table. The field table validates caller input before any I/O; the
stores never enforce it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping

from debtdesk.core.config import EntityPolicySettings
from debtdesk.core.exceptions import ConfigurationError, ValidationError
from debtdesk.domain.models.enums import (
    ActivityType,
    CasePriority,
    CaseStatus,
    FieldType,
    PaymentMethod,
    PaymentStatus,
    PolicyCategory,
    PortfolioType,
)
from debtdesk.domain.models.record import Record, parse_timestamp

logger = logging.getLogger(__name__)

ENTITY_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]{0,62}$")


@dataclass
class FieldDefinition:
    """Advisory type of one entity field."""
    name: str
    field_type: FieldType = FieldType.STRING
    allowed_values: tuple[str, ...] = ()

    def check(self, entity: str, value: Any) -> None:
        if value is None:
            return

        if self.field_type == FieldType.STRING:
            ok = isinstance(value, str)
        elif self.field_type == FieldType.NUMBER:
            ok = _is_number(value)
        elif self.field_type == FieldType.BOOLEAN:
            ok = isinstance(value, bool)
        elif self.field_type == FieldType.TIMESTAMP:
            ok = isinstance(value, (datetime, date)) or (
                isinstance(value, str) and (value == "" or parse_timestamp(value) is not None)
            )
        else:
            ok = value in self.allowed_values

        if not ok:
            expected = (
                f"one of {list(self.allowed_values)}"
                if self.field_type == FieldType.ENUM
                else self.field_type.value
            )
            raise ValidationError(
                f"{entity}.{self.name} must be {expected}",
                entity=entity,
                field=self.name,
                value=value,
            )

    def coerce(self, text: str) -> Any:
        """Convert a textual value (query string) to this field's type; unparseable text is kept."""
        if self.field_type == FieldType.NUMBER:
            try:
                return int(text)
            except ValueError:
                pass
            try:
                return float(text)
            except ValueError:
                return text
        if self.field_type == FieldType.BOOLEAN:
            lowered = text.strip().lower()
            if lowered in ("true", "1"):
                return True
            if lowered in ("false", "0"):
                return False
        return text


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    if isinstance(value, str):
        if value.strip() == "":
            return True
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def _enum_field(name: str, values: Iterable[Any]) -> FieldDefinition:
    return FieldDefinition(
        name=name,
        field_type=FieldType.ENUM,
        allowed_values=tuple(v.value if hasattr(v, "value") else v for v in values),
    )


@dataclass
class EntityDefinition:
    """
    Entity definition.

    Attributes:
        name: Entity name, also the remote resource path segment
        category: Reconciliation category
        fallback: Whether a remote read failure may be served locally
        required_fields: Fields that must be present and non-empty on create
        fields: Advisory field table
        description: Human-readable description
    """
    name: str
    category: PolicyCategory = PolicyCategory.REMOTE_PRIMARY
    fallback: bool = True
    required_fields: tuple[str, ...] = ()
    fields: dict[str, FieldDefinition] = field(default_factory=dict)
    description: str = ""

    @property
    def allows_local_fallback(self) -> bool:
        if self.category == PolicyCategory.LOCAL_ONLY:
            return True
        return self.fallback

    def validate_create(self, values: Any) -> None:
        self._validate_mapping(values)
        for name in self.required_fields:
            if values.get(name) in (None, ""):
                raise ValidationError(
                    f"{self.name}.{name} is required",
                    entity=self.name,
                    field=name,
                )
        self._check_types(values)

    def validate_update(self, values: Any) -> None:
        self._validate_mapping(values)
        for name in Record.CORE_FIELDS[:2]:
            if name in values:
                raise ValidationError(
                    f"{self.name}.{name} is immutable",
                    entity=self.name,
                    field=name,
                )
        for name in self.required_fields:
            if name in values and values[name] in (None, ""):
                raise ValidationError(
                    f"{self.name}.{name} cannot be cleared",
                    entity=self.name,
                    field=name,
                )
        self._check_types(values)

    def _validate_mapping(self, values: Any) -> None:
        if not isinstance(values, Mapping):
            raise ValidationError(
                f"{self.name} fields must be a mapping, got {type(values).__name__}",
                entity=self.name,
            )
        for key in values:
            if not isinstance(key, str) or not key:
                raise ValidationError(
                    f"{self.name} field names must be non-empty strings",
                    entity=self.name,
                    value=key,
                )

    def coerce_filters(self, filters: Mapping[str, Any]) -> dict[str, Any]:
        """Type string filter values (and members of membership sets) by the field table."""
        coerced: dict[str, Any] = {}
        for name, condition in filters.items():
            definition = self.fields.get(name)
            if definition is None:
                coerced[name] = condition
            elif isinstance(condition, str):
                coerced[name] = definition.coerce(condition)
            elif isinstance(condition, (set, frozenset, list, tuple)):
                coerced[name] = [
                    definition.coerce(c) if isinstance(c, str) else c for c in condition
                ]
            else:
                coerced[name] = condition
        return coerced

    def _check_types(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            definition = self.fields.get(name)
            if definition is not None:
                definition.check(self.name, value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "fallback": self.allows_local_fallback,
            "required_fields": list(self.required_fields),
            "fields": {
                name: {
                    "type": f.field_type.value,
                    **({"allowed_values": list(f.allowed_values)} if f.allowed_values else {}),
                }
                for name, f in self.fields.items()
            },
            "description": self.description,
        }


class EntityRegistry:
    """Entity name to definition lookup with a remote-primary default."""

    def __init__(self, definitions: Iterable[EntityDefinition] = ()) -> None:
        self._definitions: dict[str, EntityDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: EntityDefinition) -> None:
        self._check_name(definition.name)
        self._definitions[definition.name] = definition

    def resolve(self, name: str) -> EntityDefinition:
        """Return the definition for ``name``; unknown names are remote-primary."""
        self._check_name(name)
        definition = self._definitions.get(name)
        if definition is None:
            return EntityDefinition(name=name)
        return definition

    def is_registered(self, name: str) -> bool:
        return name in self._definitions

    def list_all(self) -> list[EntityDefinition]:
        return list(self._definitions.values())

    def apply_overrides(self, overrides: Mapping[str, EntityPolicySettings]) -> None:
        """Apply category/fallback overrides from configuration."""
        for name, override in overrides.items():
            try:
                category = PolicyCategory(override.category)
            except ValueError as e:
                raise ConfigurationError(
                    f"Unknown policy category for {name}: {override.category}",
                    config_key=f"entities.{name}.category",
                ) from e

            current = self.resolve(name)
            current.category = category
            current.fallback = override.fallback
            self._definitions[name] = current
            logger.info(f"Entity {name} policy set to {category.value} (fallback={override.fallback})")

    @staticmethod
    def _check_name(name: str) -> None:
        if not isinstance(name, str) or not ENTITY_NAME_PATTERN.match(name):
            raise ValidationError(f"Invalid entity name: {name!r}", value=name)


def default_registry() -> EntityRegistry:
    """Entities of the collections back office."""
    remote = PolicyCategory.REMOTE_PRIMARY
    money = FieldType.NUMBER
    when = FieldType.TIMESTAMP

    definitions = [
        EntityDefinition(
            name="portfolios",
            category=remote,
            required_fields=("name",),
            fields={
                "name": FieldDefinition("name"),
                "client": FieldDefinition("client"),
                "portfolio_type": _enum_field("portfolio_type", PortfolioType),
                "total_face_value": FieldDefinition("total_face_value", money),
                "purchase_price": FieldDefinition("purchase_price", money),
                "account_count": FieldDefinition("account_count", money),
            },
            description="Purchased or placed debt portfolios",
        ),
        EntityDefinition(
            name="cases",
            category=PolicyCategory.HYBRID,
            fields={
                "portfolio_id": FieldDefinition("portfolio_id"),
                "debtor_id": FieldDefinition("debtor_id"),
                "debtor_name": FieldDefinition("debtor_name"),
                "account_number": FieldDefinition("account_number"),
                "original_creditor": FieldDefinition("original_creditor"),
                "original_balance": FieldDefinition("original_balance", money),
                "current_balance": FieldDefinition("current_balance", money),
                "charge_off_date": FieldDefinition("charge_off_date", when),
                "last_payment_date": FieldDefinition("last_payment_date", when),
                "status": _enum_field("status", CaseStatus),
                "priority": _enum_field("priority", CasePriority),
            },
            description="Individual debts; may be created while the remote is unreachable",
        ),
        EntityDefinition(
            name="activity_logs",
            category=PolicyCategory.HYBRID,
            required_fields=("case_id", "activity_type"),
            fields={
                "case_id": FieldDefinition("case_id"),
                "activity_type": _enum_field("activity_type", ActivityType),
                "description": FieldDefinition("description"),
                "performed_by": FieldDefinition("performed_by"),
                "activity_date": FieldDefinition("activity_date", when),
            },
            description="Audit trail per case",
        ),
        EntityDefinition(
            name="payments",
            category=remote,
            required_fields=("case_id", "amount"),
            fields={
                "case_id": FieldDefinition("case_id"),
                "amount": FieldDefinition("amount", money),
                "payment_method": _enum_field("payment_method", PaymentMethod),
                "payment_date": FieldDefinition("payment_date", when),
                "status": _enum_field("status", PaymentStatus),
            },
        ),
        EntityDefinition(
            name="debtors",
            category=remote,
            required_fields=("name",),
            fields={
                "name": FieldDefinition("name"),
                "email": FieldDefinition("email"),
                "phone": FieldDefinition("phone"),
            },
        ),
        EntityDefinition(name="payment_plans", category=remote),
        EntityDefinition(name="communications", category=remote),
        EntityDefinition(name="templates", category=remote),
        EntityDefinition(name="company_profiles", category=remote),
        EntityDefinition(name="app_settings", category=remote),
        EntityDefinition(name="vendors", category=remote, required_fields=("name",)),
        EntityDefinition(name="import_templates", category=remote),
        EntityDefinition(name="integrations", category=remote),
        EntityDefinition(name="payment_configurations", category=remote),
        EntityDefinition(name="disputes", category=remote),
        EntityDefinition(name="settlement_offers", category=remote),
        EntityDefinition(
            name="debtor_portal_sessions",
            category=PolicyCategory.LOCAL_ONLY,
            description="Ephemeral debtor portal session tokens",
        ),
        EntityDefinition(
            name="communication_templates",
            category=PolicyCategory.LOCAL_ONLY,
            required_fields=("name",),
            description="Message templates kept on this device",
        ),
    ]
    return EntityRegistry(definitions)
