from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

JsonValue = Union[None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]]

QueryPairs = tuple[tuple[str, str], ...]


def query_pairs(query: Mapping[str, Any] | Iterable[tuple[str, Any]] | None) -> QueryPairs:
    """Normalize a mapping or an iterable of pairs into string pairs, dropping None values."""
    if not query:
        return ()
    items = query.items() if isinstance(query, Mapping) else query
    return tuple((str(key), _query_value(value)) for key, value in items if value is not None)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True, slots=True)
class EndpointReference:
    """One outbound call before it is resolved against a connection configuration."""

    method: str
    path: str
    query: QueryPairs = ()
    body: bytes | None = None
    content_type: str | None = None

    @classmethod
    def create(
        cls,
        method: str,
        path: str,
        query: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        body: bytes | None = None,
        content_type: str | None = None,
    ) -> EndpointReference:
        return cls(method.upper(), path, query_pairs(query), body or None, content_type)


@dataclass(frozen=True, slots=True)
class HttpResult:
    status: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class DiscoveredDevice:
    name: str
    service_type: str
    domain: str
    host: str = ""
    port: int = 0
    addresses: list[str] = field(default_factory=list)
    base_url: str = ""

    @property
    def key(self) -> tuple[str, str, str]:
        return self.name, self.service_type, self.domain

    def as_dict(self) -> dict[str, JsonValue]:
        data: dict[str, JsonValue] = {
            "name": self.name,
            "type": self.service_type,
            "domain": self.domain,
            "host": self.host,
            "port": self.port,
        }
        if self.addresses:
            data["addresses"] = list(self.addresses)
        data["base_url"] = self.base_url
        return data
