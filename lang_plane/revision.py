import re
import time
from dataclasses import dataclass, replace
from typing import Any

from lang_plane.errors import UnsupportedConversionError

# characters stripped by PHP trim(), stored texts depend on this exact set
_TRIM_CHARS = " \t\n\r\0\x0b"
_ESCAPED_DOLLAR = "@@@___XXX_ESCAPED_DOLLAR__@@@"

_BLANK_LINES = re.compile(r"\n{3,}")
_PERCENT_RUN = re.compile(r"%+")
# non-ASCII letters never continue a word, as in byte-oriented PCRE
_BARE_PLACEHOLDER = re.compile(r"(^|[^{])\$a\b(\->[a-zA-Z0-9_]+)?", re.ASCII)
_ESCAPED_PLACEHOLDER = re.compile(r"\\\$a\b(\->[a-zA-Z0-9_]+)?", re.ASCII)


@dataclass
class StringRevision:
    """
    Text of a single string at one point in time.

    A revision belongs to exactly one ComponentSnapshot. Copy it before
    handing it to another snapshot.
    """

    id: str
    text: str | None = ""
    timemodified: int | None = None
    deleted: bool = False
    extra: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.timemodified is None:
            self.timemodified = int(time.time())

    def copy(self) -> "StringRevision":
        return replace(
            self, extra=dict(self.extra) if self.extra is not None else None
        )


def differ(a: StringRevision, b: StringRevision) -> bool:
    """
    Returns True if the two revisions should be considered different.

    Deleted revisions are equal regardless of their text. Timestamps are
    not compared.
    """
    if a.deleted and b.deleted:
        return False
    if a.text is None or b.text is None:
        return not (a.text is None and b.text is None)
    return a.text.strip(_TRIM_CHARS) != b.text.strip(_TRIM_CHARS)


def fix_syntax(text: str, format: int = 2, from_format: int | None = None) -> str:
    """
    Normalize placeholder syntax of a string text for storing.

    - ``fix_syntax(t)`` sanitizes a 2.x string
    - ``fix_syntax(t, 1)`` sanitizes a legacy 1.x string
    - ``fix_syntax(t, 2, 1)`` converts a 1.x string into the 2.x format

    Converting 2.x strings back into 1.x is not supported.
    """
    if from_format is None:
        from_format = format

    if format == 2 and from_format == 2:
        clean = text.strip(_TRIM_CHARS)
        clean = clean.replace("\r", "")
        clean = clean.replace("\\", "")
        clean = _BLANK_LINES.sub("\n\n\n", clean)

    elif format == 2 and from_format == 1:
        clean = text.strip(_TRIM_CHARS)
        clean = clean.replace("\r", "")
        clean = _BLANK_LINES.sub("\n\n\n", clean)
        clean = _PERCENT_RUN.sub("%", clean)
        clean = clean.replace("\\$", _ESCAPED_DOLLAR)
        clean = clean.replace("\\", "")
        clean = _BARE_PLACEHOLDER.sub(r"\1{$a\2}", clean)
        clean = clean.replace(_ESCAPED_DOLLAR, "$")
        clean = clean.replace("&#36;", "$")

    elif format == 1 and from_format == 1:
        clean = text.strip(_TRIM_CHARS)
        clean = clean.replace("\r", "")
        clean = _BLANK_LINES.sub("\n\n", clean)
        clean = clean.replace("\\$", _ESCAPED_DOLLAR)
        clean = clean.replace("\\", "")
        clean = clean.replace("$", "\\$")
        # only $a and $a->something stay unescaped
        clean = _ESCAPED_PLACEHOLDER.sub(r"$a\1", clean)
        clean = clean.replace(_ESCAPED_DOLLAR, "\\$")
        clean = clean.replace('"', '\\"')
        clean = _PERCENT_RUN.sub("%", clean)
        clean = clean.replace("%", "%%")

    else:
        raise UnsupportedConversionError(
            f"Unknown placeholder syntax conversion {from_format} -> {format}"
        )

    return clean
