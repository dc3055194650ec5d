from importlib import metadata

from .config import ConnectionConfig
from .discovery import ServiceBrowser, discover_devices
from .exceptions import (
    MusicCastConfigurationException,
    MusicCastConnectionException,
    MusicCastDecodeException,
    MusicCastDiscoveryException,
    MusicCastException,
    MusicCastHTTPStatusException,
    MusicCastParamException,
    MusicCastResponseCodeException,
)
from .musiccast_data import DiscoveredDevice, EndpointReference, HttpResult
from .pyamaha import AsyncDevice, UrlBuilder

__all__ = [
    "AsyncDevice",
    "ConnectionConfig",
    "DiscoveredDevice",
    "EndpointReference",
    "HttpResult",
    "MusicCastConfigurationException",
    "MusicCastConnectionException",
    "MusicCastDecodeException",
    "MusicCastDiscoveryException",
    "MusicCastException",
    "MusicCastHTTPStatusException",
    "MusicCastParamException",
    "MusicCastResponseCodeException",
    "ServiceBrowser",
    "UrlBuilder",
    "discover_devices",
]

try:
    __version__ = metadata.version("musiccastctl")
except metadata.PackageNotFoundError:
    __version__ = "(local)"
