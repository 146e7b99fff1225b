from dataclasses import replace
from typing import Any

from lang_plane.base import (
    Blob,
    HelpFileSource,
    RepositoryLog,
    RepositoryRow,
    StageBlobStore,
)

MemoryLogData = list[RepositoryRow]
MemoryBlobData = dict[tuple[str, str], Blob]
MemoryHelpData = dict[tuple[str, str], str]


class MemoryRepositoryLog(RepositoryLog):
    def __init__(self, rows: MemoryLogData) -> None:
        self.rows = rows

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("MemoryRepositoryLog(...)")
        else:
            with p.group(4, "MemoryRepositoryLog(", ")"):
                p.breakable()
                p.text(f"rows={len(self.rows)},")
                p.breakable()

    def insert(self, row: RepositoryRow) -> int:
        row_id = len(self.rows) + 1
        self.rows.append(replace(row, id=row_id))
        return row_id

    def query(
        self,
        branch: int,
        lang: str,
        component: str,
        string_ids: list[str] | None = None,
        max_timestamp: int | None = None,
        include_deleted: bool = False,
    ) -> list[RepositoryRow]:
        wanted = set(string_ids) if string_ids else None
        matching = [
            row
            for row in self.rows
            if row.branch == branch
            and row.lang == lang
            and row.component == component
            and (wanted is None or row.stringid in wanted)
            and (max_timestamp is None or row.timemodified <= max_timestamp)
            and (include_deleted or not row.deleted)
        ]
        return sorted(matching, key=lambda row: (row.stringid, row.id or 0))

    def rows_for_string(
        self, component: str, stringid: str, include_deleted: bool = False
    ) -> list[RepositoryRow]:
        matching = [
            row
            for row in self.rows
            if row.component == component
            and row.stringid == stringid
            and (include_deleted or not row.deleted)
        ]
        return sorted(
            matching,
            key=lambda row: (row.lang, -row.branch, -row.timemodified, -(row.id or 0)),
        )

    def component_names(self, lang: str) -> list[str]:
        return sorted({row.component for row in self.rows if row.lang == lang})

    def branch_lang_components(
        self,
        branch: int | None = None,
        lang: str | None = None,
        component: str | None = None,
    ) -> list[tuple[int, str, str]]:
        return sorted(
            {
                (row.branch, row.lang, row.component)
                for row in self.rows
                if (branch is None or row.branch == branch)
                and (lang is None or row.lang == lang)
                and (component is None or row.component == component)
            }
        )


class MemoryStageBlobStore(StageBlobStore):
    def __init__(self, blobs: MemoryBlobData) -> None:
        self.blobs = blobs

    def put(self, owner_id: str, stage_id: str, data: Blob) -> bool:
        self.blobs[(owner_id, stage_id)] = data
        return True

    def get(self, owner_id: str, stage_id: str) -> Blob | None:
        return self.blobs.get((owner_id, stage_id))


class MemoryHelpFileSource(HelpFileSource):
    def __init__(self, files: MemoryHelpData) -> None:
        self.files = files

    def read(self, lang: str, path: str) -> str | None:
        return self.files.get((lang, path))


def create_memory_repository_log(rows: MemoryLogData) -> MemoryRepositoryLog:
    return MemoryRepositoryLog(rows)
