"""Rendering of device responses to the selected output format."""
from __future__ import annotations

import json
import logging
from typing import IO

import yaml

from .const import OUTPUT_JSON, OUTPUT_TABLE, OUTPUT_YAML
from .exceptions import MusicCastDecodeException
from .musiccast_data import JsonValue

_LOGGER = logging.getLogger(__name__)


def decode_json(body: bytes) -> JsonValue:
    """Decode a response body into a generic JSON value.

    Undecodable text is decoded again with errors being ignored, the same
    way text responses of the device are treated elsewhere.

    Raises
    ------
    MusicCastDecodeException
        If the body is not valid JSON.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        _LOGGER.warning("Failed to decode response. Trying to decode it with errors being ignored")
        text = body.decode("utf-8", errors="ignore")
    try:
        return json.loads(text)
    except ValueError as err:
        raise MusicCastDecodeException(f"Response is not valid JSON: {err}") from err


def response_code(value: JsonValue) -> int | None:
    """Return the application level ``response_code`` of a decoded response, if any."""
    if not isinstance(value, dict):
        return None
    code = value.get("response_code")
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    if isinstance(code, float):
        return int(code)
    if isinstance(code, str):
        try:
            return int(code.strip())
        except ValueError:
            return None
    return None


def render(body: bytes, output_format: str | None, out: IO[str]) -> None:
    """Write a raw response body to ``out``.

    An empty body writes nothing; a body that is not JSON is passed
    through unchanged with a trailing newline.
    """
    if not body:
        return
    try:
        value = decode_json(body)
    except MusicCastDecodeException:
        _LOGGER.debug("Passing through non JSON response of %d bytes", len(body))
        _write_raw(body, out)
        return
    render_value(value, output_format, out)


def render_value(value: JsonValue, output_format: str | None, out: IO[str]) -> None:
    output_format = (output_format or "").strip().lower()
    if output_format == OUTPUT_JSON:
        out.write(json.dumps(value, separators=(",", ":"), ensure_ascii=False) + "\n")
    elif output_format == OUTPUT_YAML:
        yaml.safe_dump(value, out, sort_keys=False, allow_unicode=True, default_flow_style=False)
    elif output_format == OUTPUT_TABLE:
        out.write(render_table(value))
    else:
        out.write(json.dumps(value, indent=2, ensure_ascii=False) + "\n")


def render_table(value: JsonValue) -> str:
    """Render a JSON value as tab separated lines."""
    if isinstance(value, dict):
        return "".join(f"{key}\t{value_string(value[key])}\n" for key in sorted(value))

    if isinstance(value, list):
        if value and all(isinstance(item, dict) for item in value):
            keys = sorted({key for item in value for key in item})
            lines = ["\t".join(keys)]
            lines.extend("\t".join(value_string(item.get(key)) for key in keys) for item in value)
            return "\n".join(lines) + "\n"
        return "".join(f"{value_string(item)}\n" for item in value)

    return f"{value_string(value)}\n"


def value_string(value: JsonValue) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _write_raw(body: bytes, out: IO[str]) -> None:
    if not body.endswith(b"\n"):
        body += b"\n"
    buffer = getattr(out, "buffer", None)
    if buffer is None:
        out.write(body.decode("utf-8", errors="replace"))
        return
    out.flush()
    buffer.write(body)
    buffer.flush()
