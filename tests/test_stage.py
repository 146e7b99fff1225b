import pytest
from IPython.lib.pretty import pretty

from lang_plane.component import ComponentSnapshot
from lang_plane.errors import DuplicateKeyError
from lang_plane.revision import StringRevision
from lang_plane.stage import StagingArea
from lang_plane.version import MOODLE_20, version_by_code
from tests.test_log_common import add_row

V20 = version_by_code(MOODLE_20)


def staged(*revisions: StringRevision, name: str = "moodle", lang: str = "en"):
    component = ComponentSnapshot(name, lang, V20)
    for revision in revisions:
        component.add_string(revision)
    return component


def staged_ids(stage: StagingArea, name: str = "moodle", lang: str = "en"):
    component = stage.get_component(name, lang, V20)
    return sorted(component.string_keys()) if component else []


def test_add_stages_copies(log):
    component = staged(StringRevision("welcome", "Hello", 10))
    stage = StagingArea(log)
    stage.add(component)

    component.get_string("welcome").text = "Changed"
    component.add_string(StringRevision("other", "Other", 10))

    assert staged_ids(stage) == ["welcome"]
    assert stage.get_component("moodle", "en", V20).get_string("welcome").text == (
        "Hello"
    )


def test_add_merges_components(log):
    stage = StagingArea(log)
    stage.add(staged(StringRevision("a", "A", 10)))
    stage.add(staged(StringRevision("b", "B", 10)))

    assert staged_ids(stage) == ["a", "b"]

    with pytest.raises(DuplicateKeyError):
        stage.add(staged(StringRevision("a", "A2", 20)))

    stage.add(staged(StringRevision("a", "A2", 20)), force=True)
    assert stage.get_component("moodle", "en", V20).get_string("a").text == "A2"


def test_has_component(log):
    stage = StagingArea(log)
    assert stage.has_component() is False
    assert stage.is_dirty() is False

    stage.add(staged(StringRevision("a", "A", 10), lang="cs"))

    assert stage.has_component() is True
    assert stage.is_dirty() is True
    assert stage.has_component("moodle", "cs", V20) is True
    assert stage.has_component("moodle", "en", V20) is False
    assert stage.get_component("moodle", "en", V20) is None
    with pytest.raises(TypeError):
        stage.has_component("moodle")

    stage.clear()
    assert stage.is_dirty() is False


def test_rebase_drops_unchanged_strings(log):
    add_row(log, "welcome", "Hello", 50)

    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "Hello", 100)))
    stage.rebase()

    assert stage.has_component() is False, "Empty components should be removed"
    assert stage.commit("Nothing") == 0
    assert len(log.query(MOODLE_20, "en", "moodle")) == 1


def test_rebase_keeps_newer_changes(log):
    add_row(log, "welcome", "Old", 100)

    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "New", 200)))

    assert stage.commit("  Fix typo \n") == 1
    assert stage.is_dirty() is False, "Stage should be clean after commit"

    last = log.query(MOODLE_20, "en", "moodle")[-1]
    assert last.text == "New"
    assert last.timemodified == 200
    assert last.deleted is False
    assert last.commitmsg == "Fix typo"

    component = ComponentSnapshot.from_snapshot(log, "moodle", "en", V20)
    assert component.get_string("welcome").text == "New"


def test_rebase_drops_older_changes(log):
    add_row(log, "welcome", "Old", 200)

    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "New", 100)))
    stage.rebase()

    assert stage.has_component() is False


def test_rebase_keeps_new_strings_and_removals(log):
    add_row(log, "welcome", "Hello", 10)
    add_row(log, "gone", "Gone", 10, deleted=True)

    stage = StagingArea(log)
    stage.add(
        staged(
            StringRevision("added", "Added", 5),
            StringRevision("welcome", "Hello", 20, deleted=True),
            StringRevision("gone", "Gone", 20, deleted=True),
        )
    )
    stage.rebase()

    assert staged_ids(stage) == ["added", "welcome"]


def test_rebase_revives_deleted_strings(log):
    add_row(log, "welcome", "Hello", 100, deleted=True)

    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "Hello", 200)))
    stage.rebase()
    assert staged_ids(stage) == ["welcome"]

    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "Hello", 50)))
    stage.rebase()
    assert staged_ids(stage) == []


def test_rebase_against_base_timestamp(log):
    add_row(log, "welcome", "Hello", 10)
    add_row(log, "welcome", "Changed", 20)

    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "Hello", 30)))
    stage.rebase(base_timestamp=15)
    assert staged_ids(stage) == []

    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "Hello", 30)))
    stage.rebase()
    assert staged_ids(stage) == ["welcome"]


def test_rebase_delete_missing(log):
    """
    Stage considered as the complete component:
    1. Repository: a=A, b=B, c deleted
    2. Stage: a changed
    3. Rebase with delete_missing -> a changed, b deleted, c untouched
    """
    add_row(log, "a", "A", 10)
    add_row(log, "b", "B", 10)
    add_row(log, "c", "C", 10, deleted=True)

    stage = StagingArea(log)
    stage.add(staged(StringRevision("a", "A changed", 20)))
    stage.rebase(delete_missing=True, delete_timestamp=500)

    assert staged_ids(stage) == ["a", "b"]
    removal = stage.get_component("moodle", "en", V20).get_string("b")
    assert removal.deleted is True
    assert removal.timemodified == 500

    stage.commit("Sync")
    component = ComponentSnapshot.from_snapshot(log, "moodle", "en", V20)
    assert component.string_keys() == ["a"]


def test_rebase_delete_missing_requires_bool(log):
    stage = StagingArea(log)
    with pytest.raises(TypeError):
        stage.rebase(delete_missing="yes")


def test_rebase_only_touches_staged_components(log):
    add_row(log, "a", "A", 10, component="admin")

    stage = StagingArea(log)
    stage.add(staged(StringRevision("b", "B", 10)))
    stage.rebase(delete_missing=True, delete_timestamp=20)

    assert staged_ids(stage) == ["b"]
    assert stage.has_component("admin", "en", V20) is False


def test_commit_skip_rebase(log):
    add_row(log, "welcome", "Hello", 50)

    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "Hello", 100)))

    assert stage.commit("Forced", skip_rebase=True) == 1
    assert len(log.query(MOODLE_20, "en", "moodle")) == 2


def test_commit_stores_meta_for_every_row(log):
    stage = StagingArea(log)
    stage.add(staged(StringRevision("a", "A", 10)))
    stage.add(staged(StringRevision("b", "B", 10), lang="cs"))

    assert stage.commit("Import", meta={"source": "import", "user": 7}) == 2

    rows = log.query(MOODLE_20, "en", "moodle") + log.query(MOODLE_20, "cs", "moodle")
    assert [r.meta for r in rows] == [{"source": "import", "user": 7}] * 2
    assert {r.commitmsg for r in rows} == {"Import"}


def test_pretty_repr(log):
    stage = StagingArea(log)
    stage.add(staged(StringRevision("welcome", "Hello", 10)))

    text = pretty(stage)

    assert text.startswith("StagingArea(")
    assert "ComponentSnapshot(" in text
    assert "welcome" in text
