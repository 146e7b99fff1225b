import hashlib
import re
from pathlib import Path
from typing import Any, Iterator

from lang_plane.base import RepositoryLog
from lang_plane.errors import DuplicateKeyError, MissingResourceError
from lang_plane.logging_config import get_logger
from lang_plane.naming import normalize_component, plugin_directory
from lang_plane.phpfile import PHPFILE_DOCBLOCK, format_phpfile, parse_phpfile
from lang_plane.revision import StringRevision, fix_syntax
from lang_plane.version import MOODLE_19, Version

_LOGGER = get_logger(__name__)

_STRINGID = re.compile(r"^[a-zA-Z][a-zA-Z0-9.:/_-]*$")

# row fields kept in StringRevision.extra when full information is requested
_EXTRA_FIELDS = ("id", "branch", "lang", "component", "commitmsg", "meta")


class ComponentSnapshot:
    """
    Collection of string revisions of one component in one language on one
    branch.

    The snapshot owns its revisions. String ids are unique within it.
    """

    def __init__(self, name: str, lang: str, version: Version) -> None:
        self.name = name
        self.lang = lang
        self.version = version
        self._strings: dict[str, StringRevision] = {}

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("ComponentSnapshot(...)")
        else:
            with p.group(4, "ComponentSnapshot(", ")"):
                p.breakable()
                p.text(f"name='{self.name}', lang='{self.lang}', ")
                p.text(f"version='{self.version.label}',")
                p.breakable()
                p.text("strings=")
                p.pretty(self._strings)
                p.breakable()

    @staticmethod
    def calculate_identifier(name: str, lang: str, version: Version) -> str:
        return hashlib.md5(f"{name}#{lang}@{version.code}".encode()).hexdigest()

    @property
    def identifier(self) -> str:
        return self.calculate_identifier(self.name, self.lang, self.version)

    @classmethod
    def from_snapshot(
        cls,
        log: RepositoryLog,
        name: str,
        lang: str,
        version: Version,
        timestamp: int | None = None,
        include_deleted: bool = False,
        full_info: bool = False,
        string_ids: list[str] | None = None,
    ) -> "ComponentSnapshot":
        """
        Build the component as it was at the given time (most recent if None).

        For every string the row with the highest timemodified not newer than
        the timestamp wins, rows with equal timemodified are resolved in favour
        of the later insert. Strings whose winning row is a deletion are left
        out unless include_deleted is set.
        """
        rows = log.query(
            version.code,
            lang,
            name,
            string_ids=string_ids or None,
            max_timestamp=timestamp,
            include_deleted=True,
        )
        latest = {}
        for row in rows:
            current = latest.get(row.stringid)
            if current is None or row.timemodified >= current.timemodified:
                latest[row.stringid] = row

        component = cls(name, lang, version)
        for row in latest.values():
            if row.deleted and not include_deleted:
                continue
            extra = None
            if full_info:
                extra = {field: getattr(row, field) for field in _EXTRA_FIELDS}
            revision = StringRevision(
                row.stringid, row.text, row.timemodified, row.deleted, extra
            )
            component.add_string(revision)
        return component

    @classmethod
    def from_phpfile(
        cls,
        filepath: str | Path,
        lang: str,
        version: Version,
        timemodified: int | None = None,
        name: str | None = None,
    ) -> "ComponentSnapshot":
        """
        Load strings from a file in the PHP strings format.

        Raises:
            MissingResourceError: If the file cannot be read.
        """
        filepath = Path(filepath)
        if not name:
            name = filepath.stem
        try:
            source = filepath.read_text(encoding="utf-8")
            if not timemodified:
                timemodified = int(filepath.stat().st_mtime)
        except (OSError, UnicodeDecodeError) as error:
            raise MissingResourceError(
                f"Strings definition file {filepath} not readable"
            ) from error

        component = cls(name, lang, version)
        strings = parse_phpfile(source)
        if not strings:
            _LOGGER.debug("phpfile_without_strings", path=str(filepath))
        for stringid, value in strings.items():
            if not _STRINGID.match(stringid):
                continue
            if version.code <= MOODLE_19:
                value = fix_syntax(value, 1)
            else:
                value = fix_syntax(value)
            component.add_string(
                StringRevision(stringid, value, timemodified), force=True
            )
        return component

    def export_phpfile(self, filepath: str | Path, phpdoc: str | None = None) -> bool:
        """Write the strings into a PHP strings file. Returns False on failure."""
        if phpdoc is None:
            phpdoc = PHPFILE_DOCBLOCK.format(
                name=self.name, lang=self.lang, branch=self.version.branch
            )
        content = format_phpfile([(s.id, s.text) for s in self], phpdoc)
        try:
            with open(filepath, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError:
            _LOGGER.warning("phpfile_export_failed", path=str(filepath))
            return False
        return True

    def phpfile_location(self) -> str:
        """
        Relative path of the file the component exports to.

        1.x keeps all strings in lang/xx_utf8/, since 2.0 every plugin holds
        its own strings.
        """
        if self.version.code <= MOODLE_19:
            return f"lang/{self.lang}_utf8/{self.name}.php"

        plugin_type, plugin = normalize_component(self.name)
        if plugin_type == "core":
            return f"lang/{self.lang}/{self.name}.php"
        assert plugin is not None
        directory = plugin_directory(plugin_type, plugin)
        return f"{directory}/lang/{self.lang}/{self.name}.php"

    def __iter__(self) -> Iterator[StringRevision]:
        # iterate over a copy so strings can be unlinked while looping
        return iter(list(self._strings.values()))

    def __len__(self) -> int:
        return len(self._strings)

    def get_string(self, id: str) -> StringRevision | None:
        return self._strings.get(id)

    def has_string(self, id: str | None = None) -> bool:
        if id is None:
            return len(self._strings) > 0
        return id in self._strings

    def string_keys(self) -> list[str]:
        return list(self._strings.keys())

    def add_string(self, revision: StringRevision, force: bool = False) -> None:
        if not force and revision.id in self._strings:
            raise DuplicateKeyError(
                f"String '{revision.id}' already exists in {self.name}. "
                "Use force to replace it."
            )
        self._strings[revision.id] = revision

    def unlink_string(self, id: str) -> None:
        self._strings.pop(id, None)

    def clear(self) -> None:
        self._strings.clear()

    def intersect(self, mask: "ComponentSnapshot") -> int:
        """
        Remove strings not defined in mask, return the number removed.

        Strings defined in mask as deleted are kept.
        """
        removed = 0
        for key in self.string_keys():
            if not mask.has_string(key):
                self.unlink_string(key)
                removed += 1
        return removed
