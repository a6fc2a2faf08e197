"""Closed schema descriptors built once when a collection is registered."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .exceptions import SchemaDefinitionError

NATIVE_ID_FIELD = "_id"


class FieldType(str, Enum):
    """Supported attribute types."""

    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    JSON = "json"
    ARRAY = "array"
    OBJECTID = "objectid"


_TYPE_ALIASES: dict[str, FieldType] = {
    "ref": FieldType.JSON,
    "email": FieldType.STRING,
    "objectId": FieldType.OBJECTID,
}


def parse_field_type(raw: Any, *, attribute: str) -> FieldType:
    if isinstance(raw, FieldType):
        return raw
    if not isinstance(raw, str):
        raise SchemaDefinitionError(
            f"Attribute '{attribute}' has a non-string type: {raw!r}"
        )
    if raw in _TYPE_ALIASES:
        return _TYPE_ALIASES[raw]
    try:
        return FieldType(raw.lower())
    except ValueError:
        raise SchemaDefinitionError(
            f"Attribute '{attribute}' has unknown type '{raw}'"
        ) from None


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One attribute of a collection schema.

    Attributes:
        name: Attribute name as seen by the caller.
        type: Attribute type; ``OBJECTID`` fields go through the identifier
            bridge on both the write and read paths.
        primary_key: The record identifier, stored natively under ``_id``.
        unique: Backed by a unique sparse index.
        index: Backed by a non-unique sparse index.
        foreign_key: Holds the identifier of a record in another collection.
        required: Informational; not enforced by the adapter.
        default: Value (or zero-argument callable) applied on insert when the
            attribute is absent.
        model: Identity of the collection a to-one association points at.
        collection: Identity of the collection a to-many association holds.
    """

    name: str
    type: FieldType = FieldType.STRING
    primary_key: bool = False
    unique: bool = False
    index: bool = False
    foreign_key: bool = False
    required: bool = False
    default: Any = None
    model: str | None = None
    collection: str | None = None

    @property
    def is_identifier(self) -> bool:
        return self.type is FieldType.OBJECTID

    @property
    def is_association(self) -> bool:
        return self.model is not None or self.collection is not None

    @classmethod
    def from_definition(cls, name: str, raw: Mapping[str, Any]) -> FieldDescriptor:
        """Build a descriptor from a raw ORM attribute definition.

        Foreign keys (including to-one ``model`` associations) are retyped to
        ``objectid``; to-many ``collection`` associations are arrays;
        ``autoIncrement`` is ignored since MongoDB has no native counter.
        """
        if not isinstance(raw, Mapping):
            raise SchemaDefinitionError(
                f"Attribute '{name}' must be a mapping, got {type(raw).__name__}"
            )
        model = raw.get("model")
        collection = raw.get("collection")
        foreign_key = bool(raw.get("foreignKey", raw.get("foreign_key", False)))
        if model is not None:
            foreign_key = True

        if foreign_key:
            field_type = FieldType.OBJECTID
        elif collection is not None:
            field_type = FieldType.ARRAY
        elif "type" in raw:
            field_type = parse_field_type(raw["type"], attribute=name)
        else:
            raise SchemaDefinitionError(f"Attribute '{name}' is missing a type")

        return cls(
            name=name,
            type=field_type,
            primary_key=bool(raw.get("primaryKey", raw.get("primary_key", False))),
            unique=bool(raw.get("unique", False)),
            index=bool(raw.get("index", False)),
            foreign_key=foreign_key,
            required=bool(raw.get("required", False)),
            default=raw.get("defaultsTo", raw.get("default")),
            model=str(model).lower() if model is not None else None,
            collection=str(collection).lower() if collection is not None else None,
        )


@dataclass(frozen=True)
class IndexSpec:
    """Single-field index derived from the schema: keys plus create options."""

    keys: tuple[tuple[str, int], ...]
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CollectionSchema:
    """Read-only mapping of attribute name to :class:`FieldDescriptor`."""

    fields: Mapping[str, FieldDescriptor]
    primary_key: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def from_attributes(
        cls,
        attributes: Mapping[str, Mapping[str, Any]],
        *,
        default_primary_key: str = "id",
    ) -> CollectionSchema:
        fields: dict[str, FieldDescriptor] = {}
        for name, raw in attributes.items():
            fields[name] = FieldDescriptor.from_definition(name, raw)

        flagged = [f.name for f in fields.values() if f.primary_key]
        if len(flagged) > 1:
            raise SchemaDefinitionError(
                f"Only one primary key is allowed, found: {', '.join(flagged)}"
            )
        primary_key = flagged[0] if flagged else default_primary_key

        pk = fields.get(primary_key)
        if pk is None:
            fields[primary_key] = FieldDescriptor(
                name=primary_key, type=FieldType.OBJECTID, primary_key=True
            )
        elif pk.type is FieldType.INTEGER and primary_key == "id":
            # Integer ids cannot be generated by the store; use ObjectIds instead
            fields[primary_key] = FieldDescriptor(
                name=primary_key,
                type=FieldType.OBJECTID,
                primary_key=True,
                unique=pk.unique,
            )
        elif not pk.primary_key:
            fields[primary_key] = FieldDescriptor(
                name=primary_key,
                type=pk.type,
                primary_key=True,
                unique=pk.unique,
                default=pk.default,
            )
        return cls(fields=fields, primary_key=primary_key)

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def get(self, name: str) -> FieldDescriptor | None:
        return self.fields.get(name)

    @property
    def pk_field(self) -> FieldDescriptor:
        return self.fields[self.primary_key]

    def native_name(self, name: str) -> str:
        """Map an attribute name to the stored field name."""
        if name == self.primary_key:
            return NATIVE_ID_FIELD
        return name

    def identifier_fields(self) -> list[FieldDescriptor]:
        """Non-primary fields holding native ObjectIds."""
        return [
            f for f in self.fields.values() if f.is_identifier and not f.primary_key
        ]

    def associations(self) -> list[FieldDescriptor]:
        return [f for f in self.fields.values() if f.is_association]

    def build_indexes(self) -> tuple[IndexSpec, ...]:
        """Derive sparse single-field indexes from ``unique`` / ``index`` flags.

        The primary key is skipped because MongoDB indexes ``_id`` itself.
        """
        indexes: list[IndexSpec] = []
        for name, descriptor in self.fields.items():
            if descriptor.primary_key:
                continue
            if descriptor.unique:
                options = {"sparse": True, "unique": True}
                indexes.append(IndexSpec(keys=((name, 1),), options=options))
            elif descriptor.index:
                indexes.append(IndexSpec(keys=((name, 1),), options={"sparse": True}))
        return tuple(indexes)
