from dataclasses import dataclass

MOODLE_16 = 1600
MOODLE_17 = 1700
MOODLE_18 = 1800
MOODLE_19 = 1900
MOODLE_20 = 2000
MOODLE_21 = 2100
MOODLE_22 = 2200
MOODLE_23 = 2300


@dataclass(frozen=True)
class Version:
    """
    A known branch of strings.

    Instances are shared by the registry and by every snapshot built on them,
    they are never copied.
    """

    code: int
    label: str
    branch: str
    directory: str
    translatable: bool
    current: bool


_VERSIONS: tuple[Version, ...] = (
    Version(MOODLE_21, "2.1", "MOODLE_21_STABLE", "lang21", False, False),
    Version(MOODLE_20, "2.0", "MOODLE_20_STABLE", "lang20", True, True),
    Version(MOODLE_19, "1.9", "MOODLE_19_STABLE", "lang19", True, False),
    Version(MOODLE_18, "1.8", "MOODLE_18_STABLE", "lang18", True, False),
    Version(MOODLE_17, "1.7", "MOODLE_17_STABLE", "lang17", True, False),
    Version(MOODLE_16, "1.6", "MOODLE_16_STABLE", "lang16", True, False),
)


def version_by_code(code: int) -> Version | None:
    for version in _VERSIONS:
        if version.code == code:
            return version
    return None


def version_by_branch(branch: str) -> Version | None:
    for version in _VERSIONS:
        if version.branch == branch:
            return version
    return None


def list_translatable() -> dict[int, Version]:
    """Return translatable versions keyed by code, newest first."""
    return {version.code: version for version in _VERSIONS if version.translatable}


def list_versions() -> list[Version]:
    return list(_VERSIONS)
