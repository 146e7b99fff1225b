from dataclasses import dataclass
from typing import Any

Blob = bytes


@dataclass(frozen=True)
class RepositoryRow:
    """
    One immutable record of the strings repository.

    Rows are only ever appended. ``id`` reflects the insertion order and is
    assigned by the log on insert.
    """

    branch: int
    lang: str
    component: str
    stringid: str
    text: str | None
    timemodified: int
    deleted: bool = False
    commitmsg: str = ""
    meta: dict[str, Any] | None = None
    id: int | None = None


class RepositoryLog:
    """
    Append-only persisted history of string revisions.

    The log is never updated in place. The current value of a string is the
    row with the highest timemodified, ties broken by the highest id.
    """

    def insert(self, row: RepositoryRow) -> int:
        """Append a row and return its id."""
        raise NotImplementedError()

    def query(
        self,
        branch: int,
        lang: str,
        component: str,
        string_ids: list[str] | None = None,
        max_timestamp: int | None = None,
        include_deleted: bool = False,
    ) -> list[RepositoryRow]:
        """Return matching rows ordered by stringid, then by id."""
        raise NotImplementedError()

    def rows_for_string(
        self, component: str, stringid: str, include_deleted: bool = False
    ) -> list[RepositoryRow]:
        """
        Return all rows of a string on every branch and language.

        Ordered by lang, then branch descending, timemodified descending and
        id descending, so the first row per language is the most recent one.
        """
        raise NotImplementedError()

    def component_names(self, lang: str) -> list[str]:
        """Return sorted distinct names of components having a row in lang."""
        raise NotImplementedError()

    def branch_lang_components(
        self,
        branch: int | None = None,
        lang: str | None = None,
        component: str | None = None,
    ) -> list[tuple[int, str, str]]:
        """Return sorted distinct (branch, lang, component) triples."""
        raise NotImplementedError()


class StageBlobStore:
    """
    Opaque storage of serialized stages keyed by owner and stage name.

    There is no locking, concurrent writes of the same key race and the last
    one wins.
    """

    def put(self, owner_id: str, stage_id: str, data: Blob) -> bool:
        """Store the blob. Returns False if the storage is not available."""
        raise NotImplementedError()

    def get(self, owner_id: str, stage_id: str) -> Blob | None:
        """Return the stored blob or None."""
        raise NotImplementedError()


class HelpFileSource:
    """Legacy help files of language packs, used by the HLP instruction."""

    def read(self, lang: str, path: str) -> str | None:
        """Return the content of the help file or None if not readable."""
        raise NotImplementedError()
