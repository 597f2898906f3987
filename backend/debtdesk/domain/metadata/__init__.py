from debtdesk.domain.metadata.registry import (
    EntityDefinition,
    EntityRegistry,
    FieldDefinition,
    default_registry,
)

__all__ = [
    "EntityDefinition",
    "EntityRegistry",
    "FieldDefinition",
    "default_registry",
]
