import argparse
import sys
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker

from lang_plane.component import ComponentSnapshot
from lang_plane.config import LangPlaneConfig
from lang_plane.errors import LangPlaneError
from lang_plane.impl.filesystem import DirectoryHelpFileSource, FileStageBlobStore
from lang_plane.impl.sql import Base, SqlRepositoryLog, create_sql_repository_log
from lang_plane.logging_config import configure_logging
from lang_plane.query import RepositoryQueries
from lang_plane.script import ScriptEngine, ScriptStatus, extract_script
from lang_plane.stage import PersistentStagingArea, StagingArea
from lang_plane.version import Version, version_by_branch, version_by_code


def parse_version(value: str) -> Version:
    """Resolve a version given as a code (2000) or a branch (MOODLE_20_STABLE)."""
    version = version_by_code(int(value)) if value.isdigit() else None
    if version is None:
        version = version_by_branch(value)
    if version is None:
        raise argparse.ArgumentTypeError(f"unknown version '{value}'")
    return version


def parse_stage_key(value: str) -> tuple[str, str]:
    """Split OWNER/NAME into the persistent stage identity."""
    owner_id, _, stage_id = value.partition("/")
    if not owner_id or not stage_id:
        raise argparse.ArgumentTypeError(f"expected OWNER/NAME, got '{value}'")
    return owner_id, stage_id


def open_repository(config: LangPlaneConfig) -> SqlRepositoryLog:
    url = make_url(config.database_url)
    if url.get_backend_name() == "sqlite" and url.database:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(config.database_url)
    Base.metadata.create_all(engine)
    return create_sql_repository_log(sessionmaker(bind=engine))


def open_stage(
    log: SqlRepositoryLog, config: LangPlaneConfig, key: tuple[str, str]
) -> PersistentStagingArea:
    owner_id, stage_id = key
    return PersistentStagingArea.instance_for_owner(
        log, FileStageBlobStore(config.stage_root), owner_id, stage_id
    )


def cmd_script(args: argparse.Namespace, config: LangPlaneConfig) -> int:
    log = open_repository(config)
    help_source = None
    if config.help_root:
        help_source = DirectoryHelpFileSource(config.help_root)
    engine = ScriptEngine(log, RepositoryQueries(log), help_source)

    lines = extract_script(Path(args.file).read_text(encoding="utf-8"))
    if not lines:
        print("No AMOS script found", file=sys.stderr)
        return 1

    result = engine.execute_script(lines, args.version, args.timestamp)
    for line, status in result.statuses:
        marker = "ok" if status == ScriptStatus.OK else "syntax error"
        print(f"[{marker}] {line}")

    exit_code = 1 if result.has_errors else 0
    staged = sum(len(component) for component in result.stage)
    if args.dry_run:
        print(f"{staged} string(s) staged, nothing committed")
        return exit_code

    if args.stage:
        stage = open_stage(log, config, args.stage)
        for component in result.stage:
            stage.add(component, force=True)
        if not stage.store():
            print(
                f"Unable to store stage {stage.owner_id}/{stage.stage_id}",
                file=sys.stderr,
            )
            return 1
        print(f"{staged} string(s) stored in {stage.owner_id}/{stage.stage_id}")
        return exit_code

    committed = result.stage.commit(args.message)
    print(f"{committed} string(s) committed")
    return exit_code


def cmd_import(args: argparse.Namespace, config: LangPlaneConfig) -> int:
    log = open_repository(config)
    component = ComponentSnapshot.from_phpfile(
        args.file, args.lang, args.version, name=args.component
    )
    stage = StagingArea(log)
    stage.add(component)
    committed = stage.commit(args.message, meta={"source": "import"})
    print(f"{committed} string(s) committed")
    return 0


def cmd_commit_stage(args: argparse.Namespace, config: LangPlaneConfig) -> int:
    stage = open_stage(open_repository(config), config, args.stage)
    committed = stage.commit(args.message, meta={"source": "stage"})
    if not stage.store():
        print(
            f"Unable to store stage {stage.owner_id}/{stage.stage_id}",
            file=sys.stderr,
        )
        return 1
    print(f"{committed} string(s) committed")
    return 0


def cmd_export(args: argparse.Namespace, config: LangPlaneConfig) -> int:
    log = open_repository(config)
    component = ComponentSnapshot.from_snapshot(
        log, args.component, args.lang, args.version
    )
    if not component.export_phpfile(args.output):
        print(f"Unable to write {args.output}", file=sys.stderr)
        return 1
    print(f"{len(component)} string(s) exported to {args.output}")
    return 0


def cmd_languages(args: argparse.Namespace, config: LangPlaneConfig) -> int:
    queries = RepositoryQueries(open_repository(config))
    for code, name in queries.list_languages().items():
        print(f"{code}\t{name}")
    return 0


def cmd_components(args: argparse.Namespace, config: LangPlaneConfig) -> int:
    queries = RepositoryQueries(open_repository(config))
    for name in queries.list_components():
        print(name)
    return 0


def cmd_tree(args: argparse.Namespace, config: LangPlaneConfig) -> int:
    queries = RepositoryQueries(open_repository(config))
    branch = args.branch.code if args.branch else None
    tree = queries.components_tree(branch, args.lang, args.component)
    for code, languages in tree.items():
        for lang, components in languages.items():
            print(f"{code}\t{lang}\t{' '.join(components)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lang-plane", description="Versioned strings repository"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    script = commands.add_parser("script", help="Execute an AMOS script")
    script.add_argument("file", help="Text file containing the AMOS block")
    script.add_argument("--version", type=parse_version, required=True)
    script.add_argument("--message", default="AMOS script", help="Commit message")
    script.add_argument("--timestamp", type=int, default=None)
    script.add_argument("--dry-run", action="store_true")
    script.add_argument(
        "--stage",
        type=parse_stage_key,
        default=None,
        metavar="OWNER/NAME",
        help="Keep the edits in a persistent stage instead of committing",
    )
    script.set_defaults(handler=cmd_script)

    commit = commands.add_parser("commit-stage", help="Commit a persistent stage")
    commit.add_argument("stage", type=parse_stage_key, metavar="OWNER/NAME")
    commit.add_argument("--message", default="Staged edits", help="Commit message")
    commit.set_defaults(handler=cmd_commit_stage)

    imp = commands.add_parser("import", help="Commit strings from a PHP file")
    imp.add_argument("file")
    imp.add_argument("--lang", required=True)
    imp.add_argument("--version", type=parse_version, required=True)
    imp.add_argument("--component", default=None)
    imp.add_argument("--message", default="Import strings")
    imp.set_defaults(handler=cmd_import)

    exp = commands.add_parser("export", help="Write a component into a PHP file")
    exp.add_argument("output")
    exp.add_argument("--component", required=True)
    exp.add_argument("--lang", required=True)
    exp.add_argument("--version", type=parse_version, required=True)
    exp.set_defaults(handler=cmd_export)

    languages = commands.add_parser("languages", help="List known languages")
    languages.set_defaults(handler=cmd_languages)

    components = commands.add_parser("components", help="List known components")
    components.set_defaults(handler=cmd_components)

    tree = commands.add_parser("tree", help="Show branch/language/component tree")
    tree.add_argument("--branch", type=parse_version, default=None)
    tree.add_argument("--lang", default=None)
    tree.add_argument("--component", default=None)
    tree.set_defaults(handler=cmd_tree)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = LangPlaneConfig.from_env()
        configure_logging(config.log_level)
        return args.handler(args, config)
    except LangPlaneError as error:
        print(f"ERROR: {error}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
