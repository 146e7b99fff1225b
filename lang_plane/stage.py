import time
from typing import Any, Iterator

from lang_plane.base import RepositoryLog, RepositoryRow, StageBlobStore
from lang_plane.component import ComponentSnapshot
from lang_plane.errors import IdentityError, StageDecodeError
from lang_plane.logging_config import get_logger
from lang_plane.revision import differ
from lang_plane.stage_codec import decode_stage, encode_stage
from lang_plane.version import Version

_LOGGER = get_logger(__name__)


class StagingArea:
    """
    Components with string edits that are not yet committed to the repository.

    Staged strings are copies, changing them does not affect the snapshot
    they were added from. Edits are invisible to the log until commit().
    """

    def __init__(self, log: RepositoryLog) -> None:
        self.log = log
        self._components: dict[str, ComponentSnapshot] = {}

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("StagingArea(...)")
        else:
            with p.group(4, "StagingArea(", ")"):
                p.breakable()
                p.text("components=")
                p.pretty(list(self._components.values()))
                p.breakable()

    def __iter__(self) -> Iterator[ComponentSnapshot]:
        return iter(list(self._components.values()))

    def add(self, component: ComponentSnapshot, force: bool = False) -> None:
        """Stage copies of all strings of the component."""
        cid = component.identifier
        if cid not in self._components:
            self._components[cid] = ComponentSnapshot(
                component.name, component.lang, component.version
            )
        for revision in component:
            self._components[cid].add_string(revision.copy(), force)

    def get_component(
        self, name: str, lang: str, version: Version
    ) -> ComponentSnapshot | None:
        cid = ComponentSnapshot.calculate_identifier(name, lang, version)
        return self._components.get(cid)

    def has_component(
        self,
        name: str | None = None,
        lang: str | None = None,
        version: Version | None = None,
    ) -> bool:
        if name is None and lang is None and version is None:
            return len(self._components) > 0
        if name is None or lang is None or version is None:
            raise TypeError("name, lang and version must be given together")
        cid = ComponentSnapshot.calculate_identifier(name, lang, version)
        return cid in self._components

    def is_dirty(self) -> bool:
        return self.has_component()

    def clear(self) -> None:
        for component in self._components.values():
            component.clear()
        self._components = {}

    def rebase(
        self,
        base_timestamp: int | None = None,
        delete_missing: bool = False,
        delete_timestamp: int | None = None,
    ) -> None:
        """
        Keep only the staged strings that modify the repository.

        Every staged component is compared with its cap, the repository state
        at base_timestamp (most recent if None) including deleted strings.

        If delete_missing is set, the stage is considered the complete state
        of its components: every string present in the cap but not staged is
        staged as deleted with delete_timestamp (now if None).
        """
        if not isinstance(delete_missing, bool):
            raise TypeError("delete_missing must be a bool")

        for cid, component in list(self._components.items()):
            cap = ComponentSnapshot.from_snapshot(
                self.log,
                component.name,
                component.lang,
                component.version,
                base_timestamp,
                include_deleted=True,
            )

            if delete_missing:
                if not delete_timestamp:
                    delete_timestamp = int(time.time())
                for existing in cap:
                    if not component.has_string(existing.id):
                        removal = existing.copy()
                        removal.deleted = True
                        removal.timemodified = delete_timestamp
                        component.add_string(removal)

            for staged in component:
                capped = cap.get_string(staged.id)
                if capped is None:
                    # new string
                    continue
                if staged.deleted and not capped.deleted:
                    # removal of an existing string
                    continue
                if not staged.deleted and capped.deleted:
                    # revival of a removed string
                    if staged.timemodified < capped.timemodified:
                        component.unlink_string(staged.id)
                    continue
                if not differ(staged, capped):
                    component.unlink_string(staged.id)
                    continue
                if staged.timemodified < capped.timemodified:
                    component.unlink_string(staged.id)
                    continue

            if not component.has_string():
                del self._components[cid]

        _LOGGER.debug("stage_rebased", components=len(self._components))

    def commit(
        self,
        message: str = "",
        meta: dict[str, Any] | None = None,
        skip_rebase: bool = False,
    ) -> int:
        """
        Append the staged strings to the repository and clear the stage.

        Rebases first unless skip_rebase is set. Components are appended one
        by one, a failure leaves the already appended rows in the log.
        Returns the number of appended rows.
        """
        if not skip_rebase:
            self.rebase()

        appended = 0
        for component in self._components.values():
            for revision in component:
                assert revision.timemodified is not None
                self.log.insert(
                    RepositoryRow(
                        branch=component.version.code,
                        lang=component.lang,
                        component=component.name,
                        stringid=revision.id,
                        text=revision.text,
                        timemodified=revision.timemodified,
                        deleted=revision.deleted,
                        commitmsg=message.strip(),
                        meta=dict(meta) if meta else None,
                    )
                )
                appended += 1

        _LOGGER.info("stage_committed", rows=appended, message=message.strip())
        self.clear()
        return appended


class PersistentStagingArea(StagingArea):
    """
    Staging area that can be stored and restored under an owner and a name.

    Nothing locks the stored blob, callers must serialize access to one
    (owner_id, stage_id) pair themselves.
    """

    def __init__(
        self,
        log: RepositoryLog,
        blob_store: StageBlobStore,
        owner_id: str | int,
        stage_id: str,
    ) -> None:
        if not owner_id or not stage_id:
            raise IdentityError("Persistent stage identification failed")
        super().__init__(log)
        self.blob_store = blob_store
        self.owner_id = str(owner_id)
        self.stage_id = stage_id

    @classmethod
    def instance_for_owner(
        cls,
        log: RepositoryLog,
        blob_store: StageBlobStore,
        owner_id: str | int,
        stage_id: str,
    ) -> "PersistentStagingArea":
        stage = cls(log, blob_store, owner_id, stage_id)
        stage.restore()
        return stage

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("PersistentStagingArea(...)")
        else:
            with p.group(4, "PersistentStagingArea(", ")"):
                p.breakable()
                p.text(f"owner_id='{self.owner_id}', stage_id='{self.stage_id}',")
                p.breakable()
                p.text("components=")
                p.pretty(list(self._components.values()))
                p.breakable()

    def store(self) -> bool:
        data = encode_stage(self._components.values())
        stored = self.blob_store.put(self.owner_id, self.stage_id, data)
        if stored:
            _LOGGER.debug(
                "stage_stored", owner_id=self.owner_id, stage_id=self.stage_id
            )
        return stored

    def restore(self) -> None:
        """Load the stored stage. Missing or corrupt data gives an empty stage."""
        self._components = {}
        data = self.blob_store.get(self.owner_id, self.stage_id)
        if data is None:
            return
        try:
            components = decode_stage(data)
        except StageDecodeError as error:
            _LOGGER.warning(
                "stage_restore_failed",
                owner_id=self.owner_id,
                stage_id=self.stage_id,
                error=str(error),
            )
            return
        self._components = {c.identifier: c for c in components}

    def discard(self) -> bool:
        """Clear the stage and store the empty state."""
        self.clear()
        return self.store()
