"""Discovery of MusicCast devices with the ``dns-sd`` service browser."""
from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Sequence

from .const import BROWSE_TIMEOUT, DNS_SD, PRODUCT_PATH, RESOLVE_TIMEOUT, SERVICE_TYPES
from .exceptions import MusicCastDiscoveryException
from .musiccast_data import DiscoveredDevice

_LOGGER = logging.getLogger(__name__)

REACHABLE_MARKER = "can be reached at"


def parse_browse_line(line: str) -> tuple[str, str, str] | None:
    """Parse one line of ``dns-sd -B`` output into ``(name, type, domain)``.

    Only ``Add`` events are kept::

        Timestamp     A/R    Flags  if Domain   Service Type      Instance Name
        13:43:16.380  Add        3   4 local.   _musiccast._tcp.  Living Room
    """
    line = line.strip()
    if not line or line.startswith("Browsing") or line.startswith("DATE:"):
        return None
    fields = line.split()
    if len(fields) < 6 or fields[1] != "Add":
        return None
    name = " ".join(fields[6:])
    if not name:
        return None
    return name, fields[5], fields[4]


def parse_resolve_output(output: str) -> tuple[str, int]:
    """Find the ``can be reached at host:port`` line of ``dns-sd -L`` output.

    Returns an empty host if no such line exists, and port 0 if the port is
    missing or not a number.
    """
    for line in output.splitlines():
        idx = line.find(REACHABLE_MARKER)
        if idx == -1:
            continue
        fields = line[idx + len(REACHABLE_MARKER) :].split()
        if not fields:
            continue
        host_port = fields[0].removesuffix(".")
        if ":" not in host_port:
            return host_port, 0
        host, _, port = host_port.rpartition(":")
        try:
            return host, int(port)
        except ValueError:
            return host, 0
    return "", 0


def device_base_url(host: str, port: int) -> str:
    if not host:
        return ""
    if port in (0, 80):
        return f"http://{host}{PRODUCT_PATH}"
    return f"http://{host}:{port}{PRODUCT_PATH}"


class ServiceBrowser:
    """Browse and resolve MusicCast services on the local network."""

    def __init__(
        self,
        service_types: Sequence[str] = SERVICE_TYPES,
        browse_timeout: float = BROWSE_TIMEOUT,
        resolve_timeout: float = RESOLVE_TIMEOUT,
        command: str = DNS_SD,
    ) -> None:
        self.service_types = list(service_types)
        self.browse_timeout = browse_timeout
        self.resolve_timeout = resolve_timeout
        self.command = command

    async def discover(self) -> list[DiscoveredDevice]:
        """Return the deduplicated devices of all service types sorted by name and host.

        Service types are browsed concurrently; a failing browse only fails
        the whole discovery when every service type failed.
        """
        results = await asyncio.gather(
            *(self.browse_service(service) for service in self.service_types),
            return_exceptions=True,
        )

        devices: dict[tuple[str, str, str], DiscoveredDevice] = {}
        errors: list[BaseException] = []
        for service, result in zip(self.service_types, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                _LOGGER.warning("Browsing %s failed: %s", service, result)
                errors.append(result)
                continue
            for device in result:
                devices.setdefault(device.key, device)

        if errors and len(errors) == len(self.service_types):
            raise MusicCastDiscoveryException(f"Browsing failed for every service type: {errors[-1]}") from errors[-1]

        return sorted(devices.values(), key=lambda device: (device.name, device.host))

    async def browse_service(self, service: str) -> list[DiscoveredDevice]:
        entries: list[tuple[str, str, str]] = []
        for line in await self.browse(service):
            entry = parse_browse_line(line)
            if entry is not None and entry not in entries:
                entries.append(entry)

        devices = []
        for name, service_type, domain in entries:
            device = await self.resolve_service(name, service_type, domain)
            if device is not None:
                devices.append(device)
        return devices

    async def browse(self, service: str) -> list[str]:
        """Collect ``dns-sd -B`` output lines until the browse timeout.

        The browser does not exit on its own, reaching the timeout ends
        the browse normally. Failing to start it raises ``OSError``.
        """
        process = await asyncio.create_subprocess_exec(
            self.command,
            "-B",
            service,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        lines: list[str] = []
        try:
            await asyncio.wait_for(self._read_lines(process, lines), self.browse_timeout)
        except TimeoutError:
            pass
        finally:
            await self._stop(process)
        _LOGGER.debug("Browsing %s returned %d lines", service, len(lines))
        return lines

    async def resolve(self, name: str, service: str, domain: str) -> tuple[str, int]:
        """Run ``dns-sd -L`` until it reports where the service can be reached.

        Raises
        ------
        MusicCastDiscoveryException
            If no address is reported before the resolve timeout.
        """
        process = await asyncio.create_subprocess_exec(
            self.command,
            "-L",
            name,
            service,
            domain,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        lines: list[str] = []
        try:
            await asyncio.wait_for(self._read_lines(process, lines, until=REACHABLE_MARKER), self.resolve_timeout)
        except TimeoutError:
            pass
        finally:
            await self._stop(process)

        host, port = parse_resolve_output("\n".join(lines))
        if not host:
            raise MusicCastDiscoveryException(f"Could not resolve {name}.{service}{domain}")
        return host, port

    async def lookup(self, host: str) -> list[str]:
        """Return the IP addresses of ``host``, an empty list if it does not resolve."""
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
        except OSError as err:
            _LOGGER.debug("Lookup of %s failed: %s", host, err)
            return []
        addresses: list[str] = []
        for *_, sockaddr in infos:
            if sockaddr[0] not in addresses:
                addresses.append(sockaddr[0])
        return addresses

    async def resolve_service(self, name: str, service: str, domain: str) -> DiscoveredDevice | None:
        """Resolve one browse entry, ``None`` if it cannot be resolved."""
        try:
            host, port = await self.resolve(name, service, domain)
        except (OSError, MusicCastDiscoveryException) as err:
            _LOGGER.debug("Dropping %s: %s", name, err)
            return None

        host = host.removesuffix(".")
        addresses = await self.lookup(host) if host else []
        return DiscoveredDevice(
            name=name,
            service_type=service,
            domain=domain,
            host=host,
            port=port,
            addresses=addresses,
            base_url=device_base_url(host, port),
        )

    @staticmethod
    async def _read_lines(process: asyncio.subprocess.Process, lines: list[str], until: str | None = None) -> None:
        while True:
            raw = await process.stdout.readline()
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            lines.append(line)
            if until is not None and until in line:
                return

    @staticmethod
    async def _stop(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()


async def discover_devices(
    service_types: Sequence[str] = SERVICE_TYPES,
    browse_timeout: float = BROWSE_TIMEOUT,
    resolve_timeout: float = RESOLVE_TIMEOUT,
) -> list[DiscoveredDevice]:
    return await ServiceBrowser(service_types, browse_timeout, resolve_timeout).discover()
