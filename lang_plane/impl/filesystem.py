from pathlib import Path
from typing import Any
from urllib.parse import quote

from lang_plane.base import Blob, HelpFileSource, StageBlobStore
from lang_plane.logging_config import get_logger

_LOGGER = get_logger(__name__)


def _safe_name(value: str) -> str:
    """Encode a key into a single path segment, distinct keys stay distinct."""
    name = quote(value, safe="")
    if name.startswith("."):
        # quote() never emits "%2E", so the escape cannot collide
        name = "%2E" + name[1:]
    return name or "%"


class FileStageBlobStore(StageBlobStore):
    """Stores every stage in its own file at <root>/<owner_id>/<stage_id>."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).absolute()

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("FileStageBlobStore(...)")
        else:
            p.text(f"FileStageBlobStore(root={self.root})")

    def _path(self, owner_id: str, stage_id: str) -> Path:
        return self.root / _safe_name(owner_id) / _safe_name(stage_id)

    def put(self, owner_id: str, stage_id: str, data: Blob) -> bool:
        file_path = self._path(owner_id, stage_id)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(data)
        except OSError as error:
            _LOGGER.warning(
                "stage_blob_write_failed", path=str(file_path), error=str(error)
            )
            return False
        return True

    def get(self, owner_id: str, stage_id: str) -> Blob | None:
        file_path = self._path(owner_id, stage_id)
        try:
            return file_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as error:
            _LOGGER.warning(
                "stage_blob_read_failed", path=str(file_path), error=str(error)
            )
            return None


class DirectoryHelpFileSource(HelpFileSource):
    """Help files of 1.x language packs at <root>/<lang>_utf8/help/<path>."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).absolute()

    def read(self, lang: str, path: str) -> str | None:
        file_path = self.root / f"{lang}_utf8" / "help" / path
        if not file_path.is_file():
            return None
        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
