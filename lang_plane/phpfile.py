r"""
Strings definition files in the PHP format.

A strings file is a PHP script assigning literals into the ``$string``
array::

    $string['pluginname'] = 'Workshop';
    $string['welcome'] = 'Hello ' . "{\$a}";

Only literal values are understood; any other statement is ignored.
"""

import re
from typing import Iterator

_TOKEN = re.compile(
    r"""
      (?P<comment>//[^\n]*|\#[^\n]*|/\*.*?\*/)
    | (?P<single>'(?:[^'\\]|\\.)*')
    | (?P<double>"(?:[^"\\]|\\.)*")
    | (?P<variable>\$[a-zA-Z_][a-zA-Z0-9_]*)
    | (?P<punct>[\[\]=;.])
    | (?P<space>\s+)
    | (?P<other>.)
    """,
    re.S | re.X,
)

_DOUBLE_ESCAPE = re.compile(r"\\([nrtvef\\$\"]|[0-7]{1,3}|x[0-9A-Fa-f]{1,2})")
_DOUBLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\x0b",
    "e": "\x1b",
    "f": "\x0c",
    "\\": "\\",
    "$": "$",
    '"': '"',
}

PHPFILE_LICENSE = """<?php

// This file is part of Moodle - http://moodle.org/
//
// Moodle is free software: you can redistribute it and/or modify
// it under the terms of the GNU General Public License as published by
// the Free Software Foundation, either version 3 of the License, or
// (at your option) any later version.
//
// Moodle is distributed in the hope that it will be useful,
// but WITHOUT ANY WARRANTY; without even the implied warranty of
// MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
// GNU General Public License for more details.
//
// You should have received a copy of the GNU General Public License
// along with Moodle.  If not, see <http://www.gnu.org/licenses/>.


"""

PHPFILE_DOCBLOCK = """/**
 * Strings for component '{name}', language '{lang}', branch '{branch}'
 *
 * @package   {name}
 * @copyright 1999 onwards Martin Dougiamas  {{@link http://moodle.com}}
 * @license   http://www.gnu.org/copyleft/gpl.html GNU GPL v3 or later
 */


"""


def _tokens(source: str) -> Iterator[tuple[str, str]]:
    for match in _TOKEN.finditer(source):
        kind = match.lastgroup
        assert kind is not None
        if kind in ("comment", "space"):
            continue
        yield kind, match.group()


def _unquote_single(literal: str) -> str:
    body = literal[1:-1]
    return re.sub(r"\\([\\'])", r"\1", body)


def _unquote_double(literal: str) -> str:
    def _replace(match: re.Match) -> str:
        escape = match.group(1)
        if escape in _DOUBLE_ESCAPES:
            return _DOUBLE_ESCAPES[escape]
        if escape.startswith("x"):
            return chr(int(escape[1:], 16))
        return chr(int(escape, 8) & 0xFF)

    return _DOUBLE_ESCAPE.sub(_replace, literal[1:-1])


def _literal_value(kind: str, value: str) -> str | None:
    if kind == "single":
        return _unquote_single(value)
    if kind == "double":
        return _unquote_double(value)
    return None


def parse_phpfile(source: str) -> dict[str, str]:
    """Return string ids and texts assigned in the given PHP source."""
    tokens = list(_tokens(source))
    strings: dict[str, str] = {}
    pos = 0

    def _expect(value: str) -> bool:
        nonlocal pos
        if pos < len(tokens) and tokens[pos] == ("punct", value):
            pos += 1
            return True
        return False

    def _literal() -> str | None:
        nonlocal pos
        if pos >= len(tokens):
            return None
        result = _literal_value(*tokens[pos])
        if result is not None:
            pos += 1
        return result

    while pos < len(tokens):
        if tokens[pos] != ("variable", "$string"):
            pos += 1
            continue
        pos += 1
        if not _expect("["):
            continue
        key = _literal()
        if key is None or not _expect("]") or not _expect("="):
            continue
        value = _literal()
        if value is None:
            continue
        parts = [value]
        complete = True
        while _expect("."):
            part = _literal()
            if part is None:
                complete = False
                break
            parts.append(part)
        if complete and _expect(";"):
            strings[key] = "".join(parts)

    return strings


def var_export(text: str | None) -> str:
    """Render a PHP literal the way PHP's var_export() does."""
    if text is None:
        return "NULL"
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def format_phpfile(strings: list[tuple[str, str | None]], docblock: str) -> str:
    lines = [PHPFILE_LICENSE, docblock]
    for stringid, text in strings:
        lines.append(f"$string['{stringid}'] = {var_export(text)};\n")
    return "".join(lines)
