"""Adapter configuration with an enumerated set of recognized keys."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from .exceptions import ConfigurationError

# Legacy camelCase spellings accepted from ORM connection configs
_KEY_ALIASES: dict[str, str] = {
    "primaryKey": "primary_key",
    "caseSensitive": "case_sensitive",
    "streamBatchSize": "stream_batch_size",
}


@dataclass(frozen=True)
class AdapterConfig:
    """
    Immutable adapter configuration.

    Attributes:
        primary_key: Field name used for the primary key when no attribute
            is flagged ``primaryKey``.
        case_sensitive: When ``False`` pattern operators (``like``,
            ``contains``, ``startsWith``, ``endsWith``) match case-insensitively.
        stream_batch_size: Cursor batch size for ``stream()``; ``None`` lets
            the driver decide.
    """

    primary_key: str = "id"
    case_sensitive: bool = False
    stream_batch_size: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> AdapterConfig:
        """Build a config from a plain mapping, rejecting unknown keys."""
        return cls().merge(data)

    def merge(self, data: Mapping[str, Any] | None) -> AdapterConfig:
        """Return a copy with the recognized keys of ``data`` applied."""
        if not data:
            return self
        changes: dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in _FIELDS:
                raise ConfigurationError(
                    f"Unknown configuration key '{key}'. "
                    f"Recognized keys: {', '.join(sorted(_FIELDS))}"
                )
            changes[name] = value
        config = replace(self, **changes)
        config._validate()
        return config

    def _validate(self) -> None:
        if not isinstance(self.primary_key, str) or not self.primary_key:
            raise ConfigurationError("primary_key must be a non-empty string")
        if not isinstance(self.case_sensitive, bool):
            raise ConfigurationError("case_sensitive must be a boolean")
        if self.stream_batch_size is not None and (
            not isinstance(self.stream_batch_size, int) or self.stream_batch_size <= 0
        ):
            raise ConfigurationError("stream_batch_size must be a positive integer")


_FIELDS = frozenset(AdapterConfig.__dataclass_fields__)
