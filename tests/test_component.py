import pytest
from IPython.lib.pretty import pretty

from lang_plane.component import ComponentSnapshot
from lang_plane.errors import DuplicateKeyError
from lang_plane.revision import StringRevision
from lang_plane.version import MOODLE_19, MOODLE_20, version_by_code
from tests.test_log_common import add_row

V20 = version_by_code(MOODLE_20)
V19 = version_by_code(MOODLE_19)


def make_component(*revisions: StringRevision) -> ComponentSnapshot:
    component = ComponentSnapshot("moodle", "en", V20)
    for revision in revisions:
        component.add_string(revision)
    return component


def test_add_string_rejects_duplicates():
    component = make_component(StringRevision("welcome", "Hello", 10))

    with pytest.raises(DuplicateKeyError):
        component.add_string(StringRevision("welcome", "Hi", 20))
    assert component.get_string("welcome").text == "Hello"

    component.add_string(StringRevision("welcome", "Hi", 20), force=True)
    assert component.get_string("welcome").text == "Hi"


def test_duplicate_key_error_is_a_key_error():
    component = make_component(StringRevision("welcome", "Hello", 10))
    with pytest.raises(KeyError):
        component.add_string(StringRevision("welcome", "Hello", 10))


def test_string_access():
    component = make_component(
        StringRevision("a", "A", 10), StringRevision("b", "B", 10)
    )

    assert len(component) == 2
    assert component.has_string() is True
    assert component.has_string("a") is True
    assert component.has_string("c") is False
    assert component.get_string("c") is None
    assert component.string_keys() == ["a", "b"]

    component.unlink_string("a")
    component.unlink_string("missing")
    assert component.string_keys() == ["b"]

    component.clear()
    assert component.has_string() is False
    assert len(component) == 0


def test_unlink_while_iterating():
    component = make_component(
        StringRevision("a", "A", 10), StringRevision("b", "B", 10)
    )
    for revision in component:
        component.unlink_string(revision.id)
    assert component.has_string() is False


def test_intersect_keeps_strings_of_mask():
    component = make_component(
        StringRevision("a", "A", 10),
        StringRevision("b", "B", 10),
        StringRevision("c", "C", 10),
    )
    mask = make_component(
        StringRevision("a", "other", 1),
        StringRevision("c", "C", 1, deleted=True),
    )

    assert component.intersect(mask) == 1
    assert component.string_keys() == ["a", "c"]
    assert component.get_string("a").text == "A"


def test_identifier():
    component = ComponentSnapshot("moodle", "en", V20)
    assert component.identifier == ComponentSnapshot.calculate_identifier(
        "moodle", "en", V20
    )
    assert len(component.identifier) == 32
    assert component.identifier != ComponentSnapshot.calculate_identifier(
        "moodle", "en", V19
    )
    assert component.identifier != ComponentSnapshot.calculate_identifier(
        "moodle", "cs", V20
    )


def test_from_snapshot_uses_most_recent_text(log):
    add_row(log, "welcome", "Hello", 10)
    add_row(log, "welcome", "Hello there", 30)
    add_row(log, "welcome", "Hi", 20)
    add_row(log, "bye", "Bye", 15)

    component = ComponentSnapshot.from_snapshot(log, "moodle", "en", V20)

    assert sorted(component.string_keys()) == ["bye", "welcome"]
    assert component.get_string("welcome").text == "Hello there"
    assert component.get_string("welcome").timemodified == 30


def test_from_snapshot_at_timestamp(log):
    add_row(log, "welcome", "Hello", 10)
    add_row(log, "welcome", "Hi", 20)
    add_row(log, "later", "Later", 25)

    component = ComponentSnapshot.from_snapshot(log, "moodle", "en", V20, 20)

    assert component.string_keys() == ["welcome"]
    assert component.get_string("welcome").text == "Hi"

    assert not ComponentSnapshot.from_snapshot(log, "moodle", "en", V20, 5)


def test_from_snapshot_later_insert_wins_a_tie(log):
    add_row(log, "welcome", "First", 10)
    add_row(log, "welcome", "Second", 10)

    component = ComponentSnapshot.from_snapshot(log, "moodle", "en", V20)

    assert component.get_string("welcome").text == "Second"


def test_from_snapshot_deleted_strings(log):
    add_row(log, "welcome", "Hello", 10)
    add_row(log, "welcome", "Hello", 20, deleted=True)
    add_row(log, "revived", "Old", 10, deleted=True)
    add_row(log, "revived", "New", 20)

    component = ComponentSnapshot.from_snapshot(log, "moodle", "en", V20)
    assert component.string_keys() == ["revived"]
    assert component.get_string("revived").text == "New"

    # the deletion hides the older live text
    before = ComponentSnapshot.from_snapshot(log, "moodle", "en", V20, 15)
    assert before.get_string("welcome").text == "Hello"

    full = ComponentSnapshot.from_snapshot(
        log, "moodle", "en", V20, include_deleted=True
    )
    assert full.get_string("welcome").deleted is True
    assert full.get_string("revived").deleted is False


def test_from_snapshot_filters_string_ids(log):
    add_row(log, "a", "A", 10)
    add_row(log, "b", "B", 10)
    add_row(log, "c", "C", 10)

    component = ComponentSnapshot.from_snapshot(
        log, "moodle", "en", V20, string_ids=["a", "c", "missing"]
    )
    assert sorted(component.string_keys()) == ["a", "c"]

    # an empty list means no filter
    component = ComponentSnapshot.from_snapshot(
        log, "moodle", "en", V20, string_ids=[]
    )
    assert len(component) == 3


def test_from_snapshot_is_scoped(log):
    add_row(log, "a", "English", 10)
    add_row(log, "a", "Czech", 10, lang="cs")
    add_row(log, "a", "Legacy", 10, branch=MOODLE_19)
    add_row(log, "a", "Admin", 10, component="admin")

    assert ComponentSnapshot.from_snapshot(log, "moodle", "cs", V20).get_string(
        "a"
    ).text == "Czech"
    assert ComponentSnapshot.from_snapshot(log, "moodle", "en", V19).get_string(
        "a"
    ).text == "Legacy"
    assert not ComponentSnapshot.from_snapshot(log, "workshop", "en", V20)


def test_from_snapshot_full_info(log):
    row_id = add_row(log, "welcome", "Hello", 10)

    plain = ComponentSnapshot.from_snapshot(log, "moodle", "en", V20)
    assert plain.get_string("welcome").extra is None

    component = ComponentSnapshot.from_snapshot(
        log, "moodle", "en", V20, full_info=True
    )
    extra = component.get_string("welcome").extra
    assert extra["id"] == row_id
    assert extra["branch"] == MOODLE_20
    assert extra["lang"] == "en"
    assert extra["component"] == "moodle"
    assert extra["commitmsg"] == ""


def test_pretty_repr():
    component = make_component(StringRevision("welcome", "Hello", 10))

    text = pretty(component)

    assert text.startswith("ComponentSnapshot(")
    assert "name='moodle'" in text
    assert "welcome" in text
