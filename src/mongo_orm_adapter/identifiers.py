"""Identifier bridge: caller string ids <-> native BSON ObjectIds."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, overload

from bson import ObjectId
from bson.errors import InvalidId

from .exceptions import InvalidIdentifierError
from .schema import NATIVE_ID_FIELD, FieldType

if TYPE_CHECKING:
    from .schema import CollectionSchema


def to_object_id(value: Any, field: str) -> ObjectId:
    """Coerce a 24-hex string (or ObjectId) into an ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        raise InvalidIdentifierError(field, value)
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise InvalidIdentifierError(field, value) from None


def coerce_identifier(value: Any, field: str) -> Any:
    """Coerce a scalar or list of identifiers; ``None`` passes through."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [coerce_identifier(v, field) for v in value]
    return to_object_id(value, field)


def to_native_values(
    values: Mapping[str, Any], schema: CollectionSchema
) -> dict[str, Any]:
    """Write path for a value set.

    The primary key is stored under ``_id``; every objectid-typed attribute is
    coerced into native form.
    """
    native: dict[str, Any] = {}
    for name, value in values.items():
        descriptor = schema.get(name)
        if name == NATIVE_ID_FIELD:
            descriptor = schema.pk_field
        if descriptor is not None and descriptor.type is FieldType.OBJECTID:
            value = coerce_identifier(value, descriptor.name)
        native[schema.native_name(name)] = value
    return native


def build_document(
    values: Mapping[str, Any], schema: CollectionSchema
) -> dict[str, Any]:
    """Build an insertable document: apply schema defaults, then coerce ids.

    A missing (or ``None``) primary key is left out so the store generates one.
    """
    data = dict(values)
    for name, descriptor in schema.fields.items():
        if name in data or descriptor.primary_key or descriptor.default is None:
            continue
        default = descriptor.default
        data[name] = default() if callable(default) else copy.deepcopy(default)

    pk = schema.primary_key
    if data.get(pk) is None:
        data.pop(pk, None)
    if data.get(NATIVE_ID_FIELD, 0) is None:
        data.pop(NATIVE_ID_FIELD)
    return to_native_values(data, schema)


def strip_identifiers(
    values: Mapping[str, Any], schema: CollectionSchema
) -> dict[str, Any]:
    """Drop primary-key fields: identifiers are immutable after creation."""
    return {
        k: v
        for k, v in values.items()
        if k not in (schema.primary_key, NATIVE_ID_FIELD)
    }


def to_external(value: Any) -> Any:
    """Stringify ObjectIds, including inside lists; other values pass through."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [to_external(v) for v in value]
    return value


def _rewrite_one(doc: Mapping[str, Any], schema: CollectionSchema) -> dict[str, Any]:
    record = dict(doc)
    if NATIVE_ID_FIELD in record:
        native_id = record.pop(NATIVE_ID_FIELD)
        record[schema.primary_key] = to_external(native_id)
    elif schema.primary_key in record:
        record[schema.primary_key] = to_external(record[schema.primary_key])
    for descriptor in schema.identifier_fields():
        if descriptor.name in record:
            record[descriptor.name] = to_external(record[descriptor.name])
    return record


@overload
def rewrite_ids(
    docs: Mapping[str, Any], schema: CollectionSchema
) -> dict[str, Any]: ...


@overload
def rewrite_ids(
    docs: list[Mapping[str, Any]], schema: CollectionSchema
) -> list[dict[str, Any]]: ...


def rewrite_ids(docs: Any, schema: CollectionSchema) -> Any:
    """Read path: expose ``_id`` under the primary key as a string.

    Objectid-typed attributes are stringified as well; every other field is
    kept as-is. Returns new dicts and is idempotent.
    """
    if isinstance(docs, Mapping):
        return _rewrite_one(docs, schema)
    return [_rewrite_one(doc, schema) for doc in docs]
