"""Result normalization: raw documents -> canonical records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from bson import ObjectId

from .identifiers import rewrite_ids

if TYPE_CHECKING:
    from .registry import CollectionHandle, CollectionRegistry
    from .schema import CollectionSchema


class ResultNormalizer:
    """
    Rewrites identifiers of raw documents and recurses into associations.

    To-many (``collection``) association fields are lists whose elements are
    either populated sub-documents or bare ids; to-one (``model``) fields hold
    an id or a populated sub-document. Sub-documents are normalized with the
    schema of the associated collection, resolved through the registry.
    """

    def __init__(self, registry: CollectionRegistry) -> None:
        self._registry = registry

    def normalize(
        self, docs: Iterable[Mapping[str, Any]], handle: CollectionHandle
    ) -> list[dict[str, Any]]:
        return [self.normalize_one(doc, handle.schema) for doc in docs]

    def normalize_one(
        self, doc: Mapping[str, Any], schema: CollectionSchema
    ) -> dict[str, Any]:
        record = rewrite_ids(doc, schema)
        for descriptor in schema.associations():
            if descriptor.name not in record:
                continue
            value = record[descriptor.name]
            if descriptor.collection is not None and isinstance(value, list):
                child = self._registry.get(descriptor.collection).schema
                record[descriptor.name] = [self._child(v, child) for v in value]
            elif descriptor.model is not None and isinstance(value, Mapping):
                child = self._registry.get(descriptor.model).schema
                record[descriptor.name] = self.normalize_one(value, child)
        return record

    def _child(self, value: Any, schema: CollectionSchema) -> Any:
        if isinstance(value, Mapping):
            return self.normalize_one(value, schema)
        if isinstance(value, ObjectId):
            return str(value)
        return value
