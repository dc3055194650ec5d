"""Command-line client for the Yamaha Extended Control API of MusicCast devices."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Awaitable, Callable, Iterable
from typing import Optional

import aiohttp

from .config import ConnectionConfig, split_query
from .const import (
    BROWSE_TIMEOUT,
    CONTENT_TYPE_JSON,
    DEFAULT_API_PREFIX,
    DEFAULT_ZONE,
    ENV_PREFIX,
    OUTPUT_FORMATS,
    OUTPUT_PRETTY,
    RESOLVE_TIMEOUT,
)
from .discovery import ServiceBrowser
from .endpoints import BODY, BODY_FILE, DOMAINS, Endpoint
from .exceptions import MusicCastException
from .musiccast_data import EndpointReference
from .output import render_value
from .pyamaha import AsyncDevice

_LOGGER = logging.getLogger(__name__)

Command = Callable[[ConnectionConfig, AsyncDevice, argparse.Namespace], Awaitable[None]]


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _read_stdin() -> bytes:
    return sys.stdin.buffer.read()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="musiccastctl",
        description=(
            "Control Yamaha MusicCast devices through the Yamaha Extended Control API. "
            f"Uses {ENV_PREFIX}* env vars for defaults. Examples: "
            "`musiccastctl --host 192.168.1.20 zone volume up --step 2`, "
            "`musiccastctl --host receiver.local netusb play-info --format table`."
        ),
    )
    parser.add_argument("--host", default=_env("HOST"), help=f"Device host or IP (env: {ENV_PREFIX}HOST)")
    parser.add_argument(
        "--base-url",
        default=_env("BASE_URL"),
        help=f"Full base URL, overrides --host, e.g. http://10.0.0.5/YamahaExtendedControl (env: {ENV_PREFIX}BASE_URL)",
    )
    parser.add_argument(
        "--api-prefix",
        default=_env("API_PREFIX", DEFAULT_API_PREFIX),
        help=f"API prefix for endpoint paths, defaults to {DEFAULT_API_PREFIX} (env: {ENV_PREFIX}API_PREFIX)",
    )
    parser.add_argument(
        "--timeout",
        default=_env("TIMEOUT"),
        help=f"Timeout in seconds for each request attempt, 0 disables it (env: {ENV_PREFIX}TIMEOUT)",
    )
    parser.add_argument(
        "--retries",
        default=_env("RETRIES"),
        help=f"Additional attempts on connection errors and 5xx answers (env: {ENV_PREFIX}RETRIES)",
    )
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        help="Extra request header as key:value or key=value, split at the first colon when one is present, repeatable",
    )
    parser.add_argument("--auth", default=_env("AUTH"), help=f"Basic auth as user:pass (env: {ENV_PREFIX}AUTH)")
    parser.add_argument(
        "--format",
        "--output",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=_env("FORMAT", OUTPUT_PRETTY),
        help=f"Output format, defaults to pretty printed JSON (env: {ENV_PREFIX}FORMAT)",
    )
    parser.add_argument(
        "--zone",
        default=_env("ZONE", DEFAULT_ZONE),
        help=f"Zone for zone commands and zone parameters (env: {ENV_PREFIX}ZONE)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the request instead of sending it")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log requests to stderr, repeat for debug")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print responses")

    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_discover_command(subparsers)
    _add_raw_command(subparsers)
    for domain, commands in DOMAINS.items():
        _add_domain_commands(subparsers, domain, commands)

    return parser


def _add_discover_command(subparsers: argparse._SubParsersAction) -> None:
    discover = subparsers.add_parser(
        "discover",
        help="Find MusicCast devices on the local network (needs dns-sd)",
        description="Browses _musiccast._tcp, _yamaha._tcp and _yxc._tcp and prints the devices found.",
    )
    discover.add_argument("--browse-timeout", type=float, default=BROWSE_TIMEOUT, help="Seconds to browse each service type")
    discover.add_argument("--resolve-timeout", type=float, default=RESOLVE_TIMEOUT, help="Seconds to resolve each device")
    discover.set_defaults(func=_cmd_discover)


def _add_raw_command(subparsers: argparse._SubParsersAction) -> None:
    raw = subparsers.add_parser(
        "raw",
        help="Send any request, e.g. `raw GET system/getDeviceInfo`",
        description=(
            "Sends METHOD PATH through the same pipeline as every other command. PATH is an endpoint "
            "below the API prefix, a path starting with the prefix, or an absolute URL."
        ),
    )
    raw.add_argument("method", help="HTTP method")
    raw.add_argument("path", help="Endpoint path or absolute URL")
    raw.add_argument("--query", action="append", default=[], help="Query parameter as key=value, repeatable")
    body = raw.add_mutually_exclusive_group()
    body.add_argument("--data", help="Request body, sent as is when it is JSON, otherwise as a JSON string")
    body.add_argument("--stdin", action="store_true", help="Read the request body from stdin")
    raw.set_defaults(func=_cmd_raw)


def _add_domain_commands(subparsers: argparse._SubParsersAction, domain: str, commands: type) -> None:
    domain_parser = subparsers.add_parser(domain, help=commands.__doc__, description=commands.__doc__)
    domain_sub = domain_parser.add_subparsers(dest=f"{domain}_command", required=True)

    groups: dict[str, argparse._SubParsersAction] = {}
    for name, endpoint in commands.COMMANDS.items():
        group, _, action = name.partition(" ")
        if action:
            if group not in groups:
                group_parser = domain_sub.add_parser(group, help=f"{group} actions")
                groups[group] = group_parser.add_subparsers(dest=f"{group.replace('-', '_')}_action", required=True)
            parent, command = groups[group], action
        else:
            parent, command = domain_sub, name

        command_parser = parent.add_parser(command, help=endpoint.help, description=endpoint.help)
        _add_endpoint_arguments(command_parser, endpoint)
        command_parser.set_defaults(func=_cmd_endpoint, endpoint=endpoint)


def _add_endpoint_arguments(parser: argparse.ArgumentParser, endpoint: Endpoint) -> None:
    for param in endpoint.params:
        if param.toggle:
            parser.add_argument(param.name, dest=param.dest, action="store_true", default=True, help="Enable (default)")
            parser.add_argument("--disable", dest=param.dest, action="store_false", help="Disable")
        elif param.positional:
            parser.add_argument(param.name, type=param.type, choices=param.choices, help=param.help)
        else:
            parser.add_argument(
                param.name,
                dest=param.dest,
                type=param.type,
                choices=param.choices,
                default=param.default,
                required=param.required and param.target != BODY,
                help=param.help,
            )
    if endpoint.body == BODY_FILE:
        source = parser.add_mutually_exclusive_group()
        source.add_argument("--file", help="JSON file with the request body")
        source.add_argument("--stdin", action="store_true", help="Read the request body from stdin")
    elif endpoint.body:
        parser.add_argument("--stdin", action="store_true", help="Read the request body from stdin")


def load_config(args: argparse.Namespace) -> ConnectionConfig:
    return ConnectionConfig.create(
        host=args.host,
        base_url=args.base_url,
        api_prefix=args.api_prefix,
        timeout=args.timeout,
        retries=args.retries,
        headers=args.header,
        auth=args.auth,
        dry_run=args.dry_run,
        output_format=args.output_format,
        verbose=args.verbose,
        quiet=args.quiet,
        zone=args.zone,
    )


def endpoint_reference(config: ConnectionConfig, args: argparse.Namespace) -> EndpointReference:
    endpoint: Endpoint = args.endpoint
    return endpoint.reference(vars(args), zone=config.zone, read_stdin=_read_stdin)


def raw_reference(args: argparse.Namespace, read_stdin: Callable[[], bytes] = _read_stdin) -> EndpointReference:
    query = [split_query(pair) for pair in args.query]
    body = None
    if args.stdin:
        body = read_stdin()
    elif args.data is not None and args.data.strip():
        body = args.data.encode() if _is_json(args.data) else json.dumps(args.data).encode()
    return EndpointReference.create(args.method, args.path, query, body, CONTENT_TYPE_JSON)


def _is_json(data: str) -> bool:
    try:
        json.loads(data)
    except ValueError:
        return False
    return True


async def _cmd_endpoint(config: ConnectionConfig, device: AsyncDevice, args: argparse.Namespace) -> None:
    await device.call(endpoint_reference(config, args))


async def _cmd_raw(config: ConnectionConfig, device: AsyncDevice, args: argparse.Namespace) -> None:
    await device.call(raw_reference(args))


async def _cmd_discover(config: ConnectionConfig, device: AsyncDevice, args: argparse.Namespace) -> None:
    browser = ServiceBrowser(browse_timeout=args.browse_timeout, resolve_timeout=args.resolve_timeout)
    devices = await browser.discover()
    _LOGGER.info("Discovered %d devices", len(devices))
    render_value([found.as_dict() for found in devices], config.output_format, sys.stdout)


async def _run(config: ConnectionConfig, args: argparse.Namespace) -> None:
    func: Command = args.func
    async with aiohttp.ClientSession() as session:
        await func(config, AsyncDevice(session, config), args)


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(args=list(argv) if argv is not None else None)
    _configure_logging(args.verbose, args.quiet)

    try:
        config = load_config(args)
        asyncio.run(_run(config, args))
    except MusicCastException as exc:
        if not args.quiet:
            sys.stderr.write(f"Error: {exc}\n")
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
