import io
import json

import pytest
import yaml

from musiccastctl.exceptions import MusicCastDecodeException
from musiccastctl.output import decode_json, render, render_table, response_code, value_string


def _render(body: bytes, output_format: str | None) -> str:
    out = io.StringIO()
    render(body, output_format, out)
    return out.getvalue()


def test_empty_body_writes_nothing() -> None:
    assert _render(b"", "table") == ""


def test_non_json_passes_through_with_newline() -> None:
    assert _render(b"<html>busy</html>", "json") == "<html>busy</html>\n"
    assert _render(b"plain\n", None) == "plain\n"


def test_default_format_is_indented_json() -> None:
    assert _render(b'{"a":1,"b":[true,null]}', None) == '{\n  "a": 1,\n  "b": [\n    true,\n    null\n  ]\n}\n'
    assert _render(b'{"a":1}', "unknown") == '{\n  "a": 1\n}\n'


def test_json_format_is_compact() -> None:
    assert _render(b'{ "power" : "on", "volume": 40 }', "json") == '{"power":"on","volume":40}\n'


def test_yaml_format() -> None:
    body = b'{"power":"on","tone_control":{"mode":"manual","bass":-2},"input_list":["net_radio","usb"]}'
    output = _render(body, "yaml")

    assert yaml.safe_load(output) == json.loads(body)
    assert output.startswith("power: 'on'\n")


def test_table_of_object_is_key_sorted() -> None:
    assert _render(b'{"b":"x","a":1}', "table") == "a\t1\nb\tx\n"


def test_table_values() -> None:
    body = b'{"float":2.0,"fraction":-20.5,"flag":false,"none":null,"nested":{"x":[1,2]}}'
    assert _render(body, "table") == 'flag\tfalse\nfloat\t2\nfraction\t-20.5\nnested\t{"x":[1,2]}\nnone\t\n'


def test_table_of_objects_has_header_of_all_keys() -> None:
    value = [{"name": "Living", "volume": 40}, {"name": "Kitchen", "mute": True}]
    assert render_table(value) == "mute\tname\tvolume\n\tLiving\t40\ntrue\tKitchen\t\n"


def test_table_of_scalars_and_mixed_lists() -> None:
    assert render_table(["a", 1, None]) == "a\n1\n\n"
    assert render_table([{"a": 1}, 2]) == '{"a":1}\n2\n'
    assert render_table([]) == ""


def test_table_of_scalar() -> None:
    assert _render(b'"on"', "table") == "on\n"
    assert _render(b"3.0", "table") == "3\n"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, ""), (True, "true"), (7, "7"), (7.0, "7"), (0.5, "0.5"), ("x", "x"), ([1, "a"], '[1,"a"]')],
)
def test_value_string(value, expected) -> None:
    assert value_string(value) == expected


def test_decode_json_rejects_invalid() -> None:
    with pytest.raises(MusicCastDecodeException):
        decode_json(b"{not json")


def test_decode_json_ignores_undecodable_bytes() -> None:
    assert decode_json(b'{"name":"Room\xff"}') == {"name": "Room"}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ({"response_code": 0}, 0),
        ({"response_code": 5}, 5),
        ({"response_code": 3.0}, 3),
        ({"response_code": "4"}, 4),
        ({"response_code": "busy"}, None),
        ({"response_code": True}, None),
        ({"power": "on"}, None),
        ([{"response_code": 1}], None),
    ],
)
def test_response_code(value, expected) -> None:
    assert response_code(value) == expected
