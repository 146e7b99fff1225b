"""
Binary encoding of staged components.

Layout (all integers big-endian)::

    magic      b"LPSTAGE"
    format     uint8
    count      uint32                number of records
    record     repeated count times:
      component  str
      lang       str
      branch     int32               version code
      stringid   str
      has_text   uint8
      text       str                 only when has_text is 1
      timestamp  int64
      deleted    uint8

where ``str`` is a uint32 byte length followed by UTF-8 bytes. Components
without strings are not encoded.
"""

import struct
from typing import Iterable

from lang_plane.component import ComponentSnapshot
from lang_plane.errors import StageDecodeError
from lang_plane.revision import StringRevision
from lang_plane.version import version_by_code

MAGIC = b"LPSTAGE"
FORMAT_VERSION = 1

_UINT8 = struct.Struct(">B")
_UINT32 = struct.Struct(">I")
_INT32 = struct.Struct(">i")
_INT64 = struct.Struct(">q")


def _pack_str(value: str) -> bytes:
    data = value.encode("utf-8")
    return _UINT32.pack(len(data)) + data


def encode_stage(components: Iterable[ComponentSnapshot]) -> bytes:
    records = []
    for component in components:
        for revision in component:
            parts = [
                _pack_str(component.name),
                _pack_str(component.lang),
                _INT32.pack(component.version.code),
                _pack_str(revision.id),
            ]
            if revision.text is None:
                parts.append(_UINT8.pack(0))
            else:
                parts.append(_UINT8.pack(1))
                parts.append(_pack_str(revision.text))
            parts.append(_INT64.pack(revision.timemodified or 0))
            parts.append(_UINT8.pack(1 if revision.deleted else 0))
            records.append(b"".join(parts))

    header = MAGIC + _UINT8.pack(FORMAT_VERSION) + _UINT32.pack(len(records))
    return header + b"".join(records)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise StageDecodeError("Stage data is truncated")
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self.take(fmt.size))[0]

    def string(self) -> str:
        size = self.unpack(_UINT32)
        try:
            return self.take(size).decode("utf-8")
        except UnicodeDecodeError as error:
            raise StageDecodeError("Stage data contains invalid text") from error

    def at_end(self) -> bool:
        return self.offset == len(self.data)


def decode_stage(data: bytes) -> list[ComponentSnapshot]:
    """
    Decode staged components.

    Raises:
        StageDecodeError: If the data is not a stage of a known format.
    """
    reader = _Reader(data)
    if reader.take(len(MAGIC)) != MAGIC:
        raise StageDecodeError("Not a stage blob")
    format_version = reader.unpack(_UINT8)
    if format_version != FORMAT_VERSION:
        raise StageDecodeError(f"Unsupported stage format {format_version}")

    components: dict[str, ComponentSnapshot] = {}
    for _ in range(reader.unpack(_UINT32)):
        name = reader.string()
        lang = reader.string()
        code = reader.unpack(_INT32)
        stringid = reader.string()
        text = reader.string() if reader.unpack(_UINT8) else None
        timemodified = reader.unpack(_INT64)
        deleted = bool(reader.unpack(_UINT8))

        version = version_by_code(code)
        if version is None:
            raise StageDecodeError(f"Unknown version code {code}")
        cid = ComponentSnapshot.calculate_identifier(name, lang, version)
        if cid not in components:
            components[cid] = ComponentSnapshot(name, lang, version)
        components[cid].add_string(
            StringRevision(stringid, text, timemodified, deleted), force=True
        )

    if not reader.at_end():
        raise StageDecodeError("Unexpected data after the last record")
    return list(components.values())
