"""
Parsing of EOS strings.

Tests verify:
1. "SCN,<n>" parses to IndexedScene(n) for any non-negative n
2. "SCN," / "SCN,abc" (and other broken values) are Invalid and flagged malformed
3. Registered plain names parse to NamedScript, anything else is Invalid noise
4. A trailing CRLF (or bare LF/CR) makes no difference
"""

import pytest

from eosbridge.commands import (
    REASON_COMMA_FORM,
    REASON_MISSING,
    REASON_NOT_INT,
    REASON_UNKNOWN,
    IndexedScene,
    Invalid,
    NamedScript,
    decode_datagram,
    parse_command,
    strip_terminator,
)
from eosbridge.registry import ScriptRegistry


@pytest.fixture
def registry():
    return ScriptRegistry.with_builtins()


@pytest.mark.parametrize("n", [0, 1, 3, 42, 999, 123456789])
def test_scene_index(registry, n):
    assert parse_command(f"SCN,{n}", registry) == IndexedScene(n)


def test_scene_with_crlf(registry):
    assert parse_command("SCN,3\r\n", registry) == IndexedScene(3)


def test_scene_leading_zeros(registry):
    assert parse_command("SCN,007", registry) == IndexedScene(7)


def test_scene_missing_value(registry):
    cmd = parse_command("SCN,", registry)
    assert isinstance(cmd, Invalid)
    assert cmd.reason == REASON_MISSING
    assert cmd.is_malformed


def test_scene_missing_value_with_crlf(registry):
    cmd = parse_command("SCN,\r\n", registry)
    assert cmd == Invalid(REASON_MISSING, "SCN,")


@pytest.mark.parametrize("value", ["abc", "3a", "-1", "+3", " 3", "3.0", "1_000", "3,4", "٣"])
def test_scene_non_integer(registry, value):
    cmd = parse_command(f"SCN,{value}", registry)
    assert isinstance(cmd, Invalid), f"SCN,{value!r} should not parse"
    assert cmd.reason == REASON_NOT_INT
    assert cmd.is_malformed


@pytest.mark.parametrize("text", ["FOO,3", "scn,3", ",3", "TOP,1"])
def test_other_comma_forms(registry, text):
    cmd = parse_command(text, registry)
    assert cmd == Invalid(REASON_COMMA_FORM, text)
    assert not cmd.is_malformed


@pytest.mark.parametrize("name", ["TOP", "SCENE"])
def test_builtin_scripts(registry, name):
    assert parse_command(name, registry) == NamedScript(name)


def test_terminator_insignificant(registry):
    assert parse_command("TOP\r\n", registry) == parse_command("TOP", registry)
    assert parse_command("TOP\n", registry) == NamedScript("TOP")
    assert parse_command("TOP\r", registry) == NamedScript("TOP")


def test_registered_script():
    reg = ScriptRegistry.with_builtins(["LOWER3"])
    assert parse_command("LOWER3\r\n", reg) == NamedScript("LOWER3")


@pytest.mark.parametrize("text", ["top", "Top", "GO", "", "TOP ", " TOP", "SCN", "TOP\r\n\r\n"])
def test_unknown_plain_text(registry, text):
    cmd = parse_command(text, registry)
    assert isinstance(cmd, Invalid)
    assert cmd.reason == REASON_UNKNOWN
    assert not cmd.is_malformed


def test_strip_terminator_only_one():
    assert strip_terminator("A\r\n") == "A"
    assert strip_terminator("A\n\n") == "A\n"
    assert strip_terminator("A") == "A"


def test_decode_datagram_replaces_garbage():
    assert decode_datagram(b"TOP\r\n") == "TOP\r\n"
    assert decode_datagram(b"\xffTOP") == "\ufffdTOP"
