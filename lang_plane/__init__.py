from .base import Blob, HelpFileSource, RepositoryLog, RepositoryRow, StageBlobStore
from .component import ComponentSnapshot
from .errors import (
    DuplicateKeyError,
    IdentityError,
    LangPlaneError,
    MissingResourceError,
    UnsupportedConversionError,
)
from .impl.memory import create_memory_repository_log
from .impl.sql import create_sql_repository_log, create_sql_stage_blob_store
from .query import RepositoryQueries
from .revision import StringRevision, differ, fix_syntax
from .script import ScriptEngine, ScriptStatus, extract_script, parse_instruction
from .stage import PersistentStagingArea, StagingArea
from .version import Version, list_translatable, version_by_branch, version_by_code

__all__ = [
    "Blob",
    "HelpFileSource",
    "RepositoryLog",
    "RepositoryRow",
    "StageBlobStore",
    "ComponentSnapshot",
    "DuplicateKeyError",
    "IdentityError",
    "LangPlaneError",
    "MissingResourceError",
    "UnsupportedConversionError",
    "create_memory_repository_log",
    "create_sql_repository_log",
    "create_sql_stage_blob_store",
    "RepositoryQueries",
    "StringRevision",
    "differ",
    "fix_syntax",
    "ScriptEngine",
    "ScriptStatus",
    "extract_script",
    "parse_instruction",
    "PersistentStagingArea",
    "StagingArea",
    "Version",
    "list_translatable",
    "version_by_branch",
    "version_by_code",
]
