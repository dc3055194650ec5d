from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .const import DEFAULT_API_PREFIX, DEFAULT_ZONE, OUTPUT_PRETTY
from .exceptions import MusicCastConfigurationException


def split_header(header: str) -> tuple[str, str]:
    """Split a ``key:value`` or ``key=value`` header, ``:`` wins when both are present."""
    separator = ":" if ":" in header else "="
    key, sep, value = header.partition(separator)
    if not sep:
        raise MusicCastConfigurationException(f"Invalid header {header!r}, expected key:value or key=value.")
    key, value = key.strip(), value.strip()
    if not key:
        raise MusicCastConfigurationException(f"Invalid header {header!r}, the name is empty.")
    return key, value


def split_auth(auth: str) -> tuple[str, str]:
    user, _, password = auth.partition(":")
    return user, password


def split_query(pair: str) -> tuple[str, str]:
    key, sep, value = pair.partition("=")
    if not sep or not key.strip():
        raise MusicCastConfigurationException(f"Invalid query parameter {pair!r}, expected key=value.")
    return key.strip(), value.strip()


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """Settings of one invocation. Read once at start and passed to every call."""

    host: str | None = None
    base_url: str | None = None
    api_prefix: str = DEFAULT_API_PREFIX
    timeout: float = 0.0
    retries: int = 0
    headers: tuple[tuple[str, str], ...] = ()
    auth: tuple[str, str] | None = None
    dry_run: bool = False
    output_format: str = OUTPUT_PRETTY
    verbose: int = 0
    quiet: bool = False
    zone: str = DEFAULT_ZONE

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise MusicCastConfigurationException("Retries must not be negative.")
        if self.timeout < 0:
            raise MusicCastConfigurationException("Timeout must not be negative.")

    @classmethod
    def create(
        cls,
        host: str | None = None,
        base_url: str | None = None,
        api_prefix: str | None = None,
        timeout: float | str | None = None,
        retries: int | str | None = None,
        headers: Iterable[str] = (),
        auth: str | None = None,
        **kwargs,
    ) -> ConnectionConfig:
        """Build a configuration from raw flag or environment values.

        Parameters
        ----------
        headers : Iterable[str]
            Extra headers given as ``key:value`` or ``key=value``.
        auth : str
            Basic auth credential in the form ``user:pass``.
        """
        try:
            timeout_value = float(timeout) if timeout not in (None, "") else 0.0
        except ValueError as err:
            raise MusicCastConfigurationException(f"Invalid timeout {timeout!r}.") from err
        try:
            retries_value = int(retries) if retries not in (None, "") else 0
        except ValueError as err:
            raise MusicCastConfigurationException(f"Invalid retry count {retries!r}.") from err

        return cls(
            host=(host or "").strip() or None,
            base_url=(base_url or "").strip() or None,
            api_prefix=api_prefix if api_prefix is not None else DEFAULT_API_PREFIX,
            timeout=timeout_value,
            retries=retries_value,
            headers=tuple(split_header(header) for header in headers or ()),
            auth=split_auth(auth) if auth and auth.strip() else None,
            **kwargs,
        )
