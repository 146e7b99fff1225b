"""lang-plane exception hierarchy.

Integrity violations caused by programmer misuse are raised immediately.
Script-level problems are reported as status values instead (see
``lang_plane.script.ScriptStatus``).
"""


class LangPlaneError(Exception):
    """Base exception for all lang-plane failures."""


class DuplicateKeyError(LangPlaneError, KeyError):
    """Raised when adding an already existing string id without force."""


class UnsupportedConversionError(LangPlaneError, ValueError):
    """Raised for an unknown pair of placeholder syntax formats."""


class MissingResourceError(LangPlaneError):
    """Raised when a strings definition file cannot be read."""


class IdentityError(LangPlaneError, ValueError):
    """Raised when a persistent stage has no owner or stage identity."""


class StageDecodeError(LangPlaneError):
    """Raised for a stage blob that cannot be decoded."""


class ConfigError(LangPlaneError):
    """Raised for invalid runtime configuration."""
