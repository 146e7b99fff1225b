"""
AMOS script: batch instructions for bulk string operations.

A script is a block of lines in any free text (typically a commit message)::

    AMOS BEGIN
     CPY [welcome,core],[greeting,core_admin]
     MOV [old,mod_workshop],[new,mod_workshop]
     HLP workshop/grading.html,[grading_help,mod_workshop]
     REM anything
    AMOS END

``AMOS START`` is an alias of ``AMOS BEGIN``. Every instruction is executed
on all known languages.
"""

import enum
import re
from dataclasses import dataclass, field

from lang_plane.base import HelpFileSource, RepositoryLog
from lang_plane.component import ComponentSnapshot
from lang_plane.logging_config import get_logger
from lang_plane.naming import legacy_component_name
from lang_plane.query import RepositoryQueries
from lang_plane.revision import StringRevision
from lang_plane.stage import StagingArea
from lang_plane.version import Version

_LOGGER = get_logger(__name__)

_SCRIPT_BLOCK = re.compile(
    r"^\s*AMOS\s+(?:BEGIN|START)\s+(.+)\s+AMOS\s+END\s*$", re.S | re.M | re.I
)
_STRING_PAIR = re.compile(
    r"^\[\s*([^,\[\]]+?)\s*,\s*([^,\[\]]+?)\s*\]"
    r"\s*,\s*"
    r"\[\s*([^,\[\]]+?)\s*,\s*([^,\[\]]+?)\s*\]$"
)
_HELP_TARGET = re.compile(r"^(.+?)\s*,\s*\[\s*([^,\[\]]+?)\s*,\s*([^,\[\]]+?)\s*\]$")
_HEADING = re.compile(r"<h1>.*</h1>", re.I)


class ScriptStatus(enum.IntEnum):
    OK = 0
    SYNTAX_ERROR = -1


@dataclass(frozen=True)
class StringRef:
    stringid: str
    component: str

    @property
    def legacy_component(self) -> str:
        return legacy_component_name(self.component)


@dataclass(frozen=True)
class CopyInstruction:
    source: StringRef
    target: StringRef


@dataclass(frozen=True)
class MoveInstruction:
    source: StringRef
    target: StringRef


@dataclass(frozen=True)
class MigrateHelpInstruction:
    helpfile: str
    target: StringRef


@dataclass(frozen=True)
class CommentInstruction:
    text: str


Instruction = (
    CopyInstruction | MoveInstruction | MigrateHelpInstruction | CommentInstruction
)


@dataclass
class ScriptResult:
    stage: StagingArea
    statuses: list[tuple[str, ScriptStatus]] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(status != ScriptStatus.OK for _, status in self.statuses)


def extract_script(text: str) -> list[str]:
    """Return the trimmed non-empty instruction lines of the script in text."""
    match = _SCRIPT_BLOCK.search(text)
    if match is None:
        return []
    lines = (line.strip() for line in match.group(1).split("\n"))
    return [line for line in lines if line]


def clean_path(path: str) -> str:
    """Make a relative path safe: no parent references, no empty segments."""
    parts = path.strip().replace("\\", "/").split("/")
    return "/".join(part for part in parts if part and part not in (".", ".."))


def parse_instruction(instruction: str) -> Instruction | None:
    """Parse a single 'CMD arguments' line, None if it is not valid."""
    command, _, argument = instruction.strip().partition(" ")
    argument = argument.strip()

    if command in ("CPY", "MOV"):
        match = _STRING_PAIR.match(argument)
        if match is None:
            return None
        source = StringRef(match.group(1), match.group(2))
        target = StringRef(match.group(3), match.group(4))
        if command == "CPY":
            return CopyInstruction(source, target)
        return MoveInstruction(source, target)

    if command == "HLP":
        match = _HELP_TARGET.match(argument)
        if match is None:
            return None
        helpfile = clean_path(match.group(1))
        if not helpfile:
            return None
        return MigrateHelpInstruction(
            helpfile, StringRef(match.group(2), match.group(3))
        )

    if command == "REM":
        return CommentInstruction(argument)

    return None


class ScriptEngine:
    """
    Executes AMOS script instructions against the repository.

    Execution never writes into the log, it produces stages for the caller to
    commit.
    """

    def __init__(
        self,
        log: RepositoryLog,
        queries: RepositoryQueries,
        help_source: HelpFileSource | None = None,
    ) -> None:
        self.log = log
        self.queries = queries
        self.help_source = help_source

    def execute(
        self, instruction: str, version: Version, timestamp: int | None = None
    ) -> StagingArea | ScriptStatus:
        """
        Execute one instruction on the given branch.

        Returns the stage to commit, ScriptStatus.OK if there is nothing to do
        or ScriptStatus.SYNTAX_ERROR for an invalid instruction.
        """
        parsed = parse_instruction(instruction)
        if parsed is None:
            _LOGGER.warning("script_syntax_error", instruction=instruction)
            return ScriptStatus.SYNTAX_ERROR

        if isinstance(parsed, CopyInstruction):
            return self.copy_string(version, parsed.source, parsed.target, timestamp)
        elif isinstance(parsed, MoveInstruction):
            return self.move_string(version, parsed.source, parsed.target, timestamp)
        elif isinstance(parsed, MigrateHelpInstruction):
            return self.migrate_helpfile(
                version, parsed.helpfile, parsed.target, timestamp
            )
        else:
            return ScriptStatus.OK

    def execute_script(
        self, lines: list[str], version: Version, timestamp: int | None = None
    ) -> ScriptResult:
        """
        Execute every instruction and collect all edits into one stage.

        Instructions are independent, they all see the same repository state.
        A later instruction replaces an earlier edit of the same string.
        """
        result = ScriptResult(StagingArea(self.log))
        for line in lines:
            outcome = self.execute(line, version, timestamp)
            if isinstance(outcome, StagingArea):
                for component in outcome:
                    result.stage.add(component, force=True)
                outcome.clear()
                result.statuses.append((line, ScriptStatus.OK))
            else:
                result.statuses.append((line, outcome))
        return result

    def _snapshot(
        self, ref: StringRef, lang: str, version: Version, timestamp: int | None
    ) -> ComponentSnapshot:
        return ComponentSnapshot.from_snapshot(
            self.log,
            ref.legacy_component,
            lang,
            version,
            timestamp,
            string_ids=[ref.stringid],
        )

    def copy_string(
        self,
        version: Version,
        source: StringRef,
        target: StringRef,
        timestamp: int | None = None,
    ) -> StagingArea:
        """
        Copy a string to another one in every language.

        Deleted strings are not copied, existing targets are not overwritten.
        """
        stage = StagingArea(self.log)
        for lang in self.queries.list_languages():
            origin = self._snapshot(source, lang, version, timestamp)
            destination = self._snapshot(target, lang, version, timestamp)
            copied = origin.get_string(source.stringid)
            if copied is not None and not destination.has_string(target.stringid):
                destination.add_string(
                    StringRevision(target.stringid, copied.text, timestamp)
                )
                stage.add(destination)
        return stage

    def move_string(
        self,
        version: Version,
        source: StringRef,
        target: StringRef,
        timestamp: int | None = None,
    ) -> StagingArea:
        """
        Move a string to another one in every language.

        The source is deleted, the target is only created if it does not
        exist yet.
        """
        stage = StagingArea(self.log)
        for lang in self.queries.list_languages():
            origin = self._snapshot(source, lang, version, timestamp)
            destination = self._snapshot(target, lang, version, timestamp)
            moved = origin.get_string(source.stringid)
            if moved is None:
                continue
            origin.add_string(
                StringRevision(source.stringid, moved.text, timestamp, deleted=True),
                force=True,
            )
            stage.add(origin)
            if not destination.has_string(target.stringid):
                destination.add_string(
                    StringRevision(target.stringid, moved.text, timestamp)
                )
                stage.add(destination)
        return stage

    def migrate_helpfile(
        self,
        version: Version,
        helpfile: str,
        target: StringRef,
        timestamp: int | None = None,
    ) -> StagingArea:
        """Turn a legacy help file into a string where the string is missing."""
        stage = StagingArea(self.log)
        if self.help_source is None:
            _LOGGER.warning("help_source_not_configured", helpfile=helpfile)
            return stage
        for lang in self.queries.list_languages():
            content = self.help_source.read(lang, helpfile)
            if content is None:
                continue
            text = _HEADING.sub("", content).strip()
            if not text:
                continue
            destination = self._snapshot(target, lang, version, timestamp)
            if not destination.has_string(target.stringid):
                destination.add_string(
                    StringRevision(target.stringid, text, timestamp)
                )
                stage.add(destination)
        return stage
