"""
Component naming conventions.

Scripts and 2.x code use the prefixed component names (``core``,
``core_admin``, ``mod_workshop``, ``auth_ldap``). The repository history is
stored under the legacy names (``moodle``, ``admin``, ``workshop``,
``auth_ldap``).
"""

# core subsystems that own their strings file directly under lang/
CORE_SUBSYSTEMS = frozenset(
    {
        "access",
        "admin",
        "auth",
        "backup",
        "block",
        "blog",
        "bulkusers",
        "calendar",
        "cohort",
        "completion",
        "countries",
        "debug",
        "dock",
        "editor",
        "error",
        "filepicker",
        "files",
        "filters",
        "form",
        "grades",
        "group",
        "help",
        "hub",
        "imscc",
        "install",
        "iso6392",
        "langconfig",
        "license",
        "message",
        "mimetypes",
        "mnet",
        "my",
        "notes",
        "pagetype",
        "pix",
        "plagiarism",
        "portfolio",
        "publish",
        "question",
        "rating",
        "repository",
        "role",
        "search",
        "table",
        "tag",
        "timezones",
        "user",
        "userkey",
        "webservice",
        "xmldb",
    }
)

# plugin type -> directory relative to the code root
PLUGIN_TYPE_DIRECTORIES = {
    "mod": "mod",
    "auth": "auth",
    "enrol": "enrol",
    "message": "message/output",
    "block": "blocks",
    "filter": "filter",
    "editor": "lib/editor",
    "format": "course/format",
    "profilefield": "user/profile/field",
    "report": "report",
    "coursereport": "course/report",
    "gradeexport": "grade/export",
    "gradeimport": "grade/import",
    "gradereport": "grade/report",
    "mnetservice": "mnet/service",
    "webservice": "webservice",
    "repository": "repository",
    "portfolio": "portfolio",
    "qtype": "question/type",
    "qformat": "question/format",
    "plagiarism": "plagiarism",
    "theme": "theme",
    "assignment": "mod/assignment/type",
    "datafield": "mod/data/field",
    "datapreset": "mod/data/preset",
    "quizreport": "mod/quiz/report",
    "workshopform": "mod/workshop/form",
    "workshopallocation": "mod/workshop/allocation",
    "workshopeval": "mod/workshop/eval",
    "local": "local",
    "tool": "admin/tool",
}


def legacy_component_name(name: str) -> str:
    """Translate a prefixed component name into the legacy one."""
    if name == "core":
        return "moodle"
    if name.startswith("core_"):
        return name[len("core_") :]
    if name.startswith("mod_"):
        return name[len("mod_") :]
    return name


def normalize_component(name: str) -> tuple[str, str | None]:
    """
    Split a component name into (type, plugin).

    Legacy module names without a prefix are modules, unless they name a
    core subsystem.
    """
    if name in ("moodle", "core"):
        return "core", None

    if "_" not in name:
        if name in CORE_SUBSYSTEMS:
            return "core", name
        return "mod", name

    plugin_type, plugin = name.split("_", 1)
    if plugin_type == "core":
        return "core", plugin
    if plugin_type not in PLUGIN_TYPE_DIRECTORIES:
        return "mod", name
    return plugin_type, plugin


def plugin_directory(plugin_type: str, plugin: str) -> str:
    return f"{PLUGIN_TYPE_DIRECTORIES[plugin_type]}/{plugin}"
