"""Runtime configuration model for lang-plane.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from lang_plane.errors import ConfigError

DEFAULT_DATA_ROOT = Path(".lang_plane")
DEFAULT_DATABASE_URL = f"sqlite:///{DEFAULT_DATA_ROOT / 'repository.db'}"
DEFAULT_STAGE_ROOT = DEFAULT_DATA_ROOT / "stages"


@dataclass(frozen=True)
class LangPlaneConfig:
    """Validated runtime configuration.

    Attributes:
        database_url: SQLAlchemy URL of the repository log database.
        stage_root: Directory holding persistent stage blobs.
        help_root: Optional root of legacy help files used by HLP instructions.
        log_level: Minimum log level name.
    """

    database_url: str
    stage_root: Path
    help_root: Path | None
    log_level: str

    @classmethod
    def from_env(cls) -> "LangPlaneConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ConfigError: If environment values are invalid.
        """
        database_url = os.getenv("LANG_PLANE_DATABASE_URL", DEFAULT_DATABASE_URL)
        stage_root = os.getenv("LANG_PLANE_STAGE_ROOT", str(DEFAULT_STAGE_ROOT))
        help_root = os.getenv("LANG_PLANE_HELP_ROOT")
        log_level = _parse_log_level(os.getenv("LANG_PLANE_LOG_LEVEL", "INFO"))
        return cls(
            database_url=database_url,
            stage_root=Path(stage_root).expanduser().resolve(),
            help_root=Path(help_root).expanduser().resolve() if help_root else None,
            log_level=log_level,
        )


def _parse_log_level(raw_value: str) -> str:
    """Validate the log level environment value.

    Raises:
        ConfigError: If the value is not a standard logging level name.
    """
    level = raw_value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(
            "Invalid LANG_PLANE_LOG_LEVEL value: "
            f"expected a logging level name, got '{raw_value}'."
        )
    return level
