from __future__ import annotations

import pytest

from histdb_import.lib.errors import FormatError
from histdb_import.lib.parsers import ParsedEntry, parse_entry


def test_parse_basic_entry() -> None:
    assert parse_entry(": 1471766782:0;git status") == ParsedEntry(
        started="1471766782", duration="0", cmd="git status"
    )


def test_parse_keeps_later_semicolons_in_command() -> None:
    parsed = parse_entry(': 1471766804:3;git commit -am "Foo";git push origin master')
    assert parsed.started == "1471766804"
    assert parsed.duration == "3"
    assert parsed.cmd == 'git commit -am "Foo";git push origin master'


def test_parse_multiline_command() -> None:
    parsed = parse_entry(': 1472100284:0;echo "hello\ncruel\n\nworld"')
    assert parsed.started == "1472100284"
    assert parsed.duration == "0"
    assert parsed.cmd == 'echo "hello\ncruel\n\nworld"'


def test_parse_ignores_marker_content_and_trims_fields() -> None:
    parsed = parse_entry("x:  1472100284 :\t12 ;  ls ")
    assert parsed == ParsedEntry(started="1472100284", duration="12", cmd="  ls ")


def test_parse_empty_command() -> None:
    assert parse_entry(": 1:0;").cmd == ""


def test_parse_without_semicolon_fails() -> None:
    with pytest.raises(FormatError, match="Unable to parse entry") as excinfo:
        parse_entry(": 1471766782:0 git status")
    assert excinfo.value.fragment == ": 1471766782:0 git status"


@pytest.mark.parametrize("header", [": 1471766782", ": 1471766782:0:5", "1471766782"])
def test_parse_header_without_three_fields_fails(header) -> None:
    with pytest.raises(FormatError, match="Unable to parse timestamp") as excinfo:
        parse_entry(f"{header};git status")
    assert excinfo.value.fragment == header
