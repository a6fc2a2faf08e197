"""Explicit registry of collection handles, shared by reference."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .config import AdapterConfig
from .exceptions import SchemaDefinitionError, UnregisteredCollectionError
from .schema import CollectionSchema, IndexSpec

logger = logging.getLogger("mongo_orm_adapter.registry")


@dataclass(frozen=True)
class CollectionHandle:
    """Registered collection: store-facing identity, schema, config and indexes.

    Created once per model and reused for the lifetime of the process.
    """

    identity: str
    schema: CollectionSchema
    config: AdapterConfig
    indexes: tuple[IndexSpec, ...] = ()

    @property
    def primary_key(self) -> str:
        return self.schema.primary_key


class CollectionRegistry:
    """
    Lookup of :class:`CollectionHandle` by identity.

    The registry is created once by the application and passed into every
    component that resolves collections. Handles may be looked up by their
    store-facing identity (``tableName``) or by the model identity they were
    registered under.
    """

    def __init__(self, config: AdapterConfig | None = None) -> None:
        self._config = config or AdapterConfig()
        self._handles: dict[str, CollectionHandle] = {}
        self._aliases: dict[str, str] = {}

    @property
    def config(self) -> AdapterConfig:
        return self._config

    def register(
        self,
        definition: Mapping[str, Any],
        *,
        config: Mapping[str, Any] | AdapterConfig | None = None,
    ) -> CollectionHandle:
        """Build and store a handle from an ORM model definition.

        ``definition`` carries ``identity``, optional ``tableName`` and the
        attribute map under ``attributes`` (or ``definition``).
        """
        model_identity = definition.get("identity")
        if not model_identity or not isinstance(model_identity, str):
            raise SchemaDefinitionError("Collection definition requires an identity")
        attributes = definition.get("attributes", definition.get("definition"))
        if attributes is None:
            attributes = {}
        if not isinstance(attributes, Mapping):
            raise SchemaDefinitionError(
                f"Attributes of '{model_identity}' must be a mapping"
            )

        if isinstance(config, AdapterConfig):
            handle_config = config
        else:
            handle_config = self._config.merge(config)

        identity = str(definition.get("tableName") or model_identity.lower())
        schema = CollectionSchema.from_attributes(
            attributes, default_primary_key=handle_config.primary_key
        )
        handle = CollectionHandle(
            identity=identity,
            schema=schema,
            config=handle_config,
            indexes=schema.build_indexes(),
        )
        self._handles[identity] = handle
        self._aliases[model_identity.lower()] = identity
        logger.debug(
            "Registered collection %s (primary key %s, %d indexes)",
            identity,
            schema.primary_key,
            len(handle.indexes),
        )
        return handle

    def get(self, identity: str) -> CollectionHandle:
        """Return the handle for ``identity`` or raise UnregisteredCollectionError."""
        handle = self._handles.get(identity)
        if handle is None:
            alias = self._aliases.get(str(identity).lower())
            handle = self._handles.get(alias) if alias else None
        if handle is None:
            raise UnregisteredCollectionError(identity)
        return handle

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, str):
            return False
        return identity in self._handles or identity.lower() in self._aliases

    def __iter__(self) -> Iterator[CollectionHandle]:
        return iter(self._handles.values())

    def __len__(self) -> int:
        return len(self._handles)
