from pathlib import Path

import pytest

from lang_plane.component import ComponentSnapshot
from lang_plane.errors import MissingResourceError
from lang_plane.phpfile import format_phpfile, parse_phpfile, var_export
from lang_plane.revision import StringRevision
from lang_plane.version import MOODLE_19, MOODLE_20, version_by_code

V20 = version_by_code(MOODLE_20)
V19 = version_by_code(MOODLE_19)

SOURCE = r"""<?php
// $string['commented'] = 'no';
/* $string['block'] = 'no'; */
$string['pluginname'] = 'Workshop';
$string['quoted'] = 'It\'s a \\ test';
$string['double'] = "Tab\there {\$a}";
$string['joined'] = 'Hello ' . "world\n";
$string['bad id'] = 'skipped later';
$string['computed'] = get_string('other');
$other['ignored'] = 'no';
"""


def test_parse_phpfile():
    strings = parse_phpfile(SOURCE)

    assert strings == {
        "pluginname": "Workshop",
        "quoted": "It's a \\ test",
        "double": "Tab\there {$a}",
        "joined": "Hello world\n",
        "bad id": "skipped later",
    }


def test_parse_phpfile_without_strings():
    assert parse_phpfile("<?php\n$a = 1;\n") == {}


def test_var_export():
    assert var_export("It's") == "'It\\'s'"
    assert var_export("back\\slash") == "'back\\\\slash'"
    assert var_export(None) == "NULL"


def test_format_phpfile_round_trips_texts():
    texts = [("welcome", "It's a \\ test"), ("plain", "Hello {$a}")]
    content = format_phpfile(texts, "")

    assert content.startswith("<?php\n")
    assert parse_phpfile(content) == dict(texts)


def test_from_phpfile(tmp_path: Path):
    filepath = tmp_path / "workshop.php"
    filepath.write_text(SOURCE, encoding="utf-8")

    component = ComponentSnapshot.from_phpfile(filepath, "en", V20, 1000)

    assert component.name == "workshop"
    assert sorted(component.string_keys()) == [
        "double",
        "joined",
        "pluginname",
        "quoted",
    ]
    # current strings are sanitized
    assert component.get_string("quoted").text == "It's a  test"
    assert component.get_string("joined").text == "Hello world"
    assert component.get_string("pluginname").timemodified == 1000


def test_from_phpfile_legacy_version(tmp_path: Path):
    filepath = tmp_path / "moodle.php"
    filepath.write_text(
        "<?php\n$string['welcome'] = 'Hello $a, 50%';\n", encoding="utf-8"
    )

    component = ComponentSnapshot.from_phpfile(filepath, "en", V19, name="core")

    assert component.name == "core"
    assert component.get_string("welcome").text == "Hello $a, 50%%"
    assert component.get_string("welcome").timemodified == int(
        filepath.stat().st_mtime
    )


def test_from_phpfile_missing(tmp_path: Path):
    with pytest.raises(MissingResourceError):
        ComponentSnapshot.from_phpfile(tmp_path / "missing.php", "en", V20)


def test_export_phpfile(tmp_path: Path):
    component = ComponentSnapshot("workshop", "cs", V20)
    component.add_string(StringRevision("pluginname", "Workshop", 10))
    component.add_string(StringRevision("quoted", "It's", 10))
    filepath = tmp_path / "workshop.php"

    assert component.export_phpfile(filepath) is True

    content = filepath.read_text(encoding="utf-8")
    assert "Strings for component 'workshop', language 'cs'" in content
    assert "branch 'MOODLE_20_STABLE'" in content
    assert "{@link http://moodle.com}" in content
    assert parse_phpfile(content) == {"pluginname": "Workshop", "quoted": "It's"}

    reloaded = ComponentSnapshot.from_phpfile(filepath, "cs", V20)
    assert reloaded.get_string("quoted").text == "It's"


def test_export_phpfile_failure(tmp_path: Path):
    component = ComponentSnapshot("workshop", "cs", V20)
    assert component.export_phpfile(tmp_path) is False


@pytest.mark.parametrize(
    "name, version, expected",
    [
        ("workshop", V19, "lang/en_utf8/workshop.php"),
        ("moodle", V20, "lang/en/moodle.php"),
        ("admin", V20, "lang/en/admin.php"),
        ("workshop", V20, "mod/workshop/lang/en/workshop.php"),
        ("auth_ldap", V20, "auth/ldap/lang/en/auth_ldap.php"),
        ("block_html", V20, "blocks/html/lang/en/block_html.php"),
    ],
)
def test_phpfile_location(name, version, expected):
    assert ComponentSnapshot(name, "en", version).phpfile_location() == expected


def test_module_example_keeps_escaped_dollar():
    from lang_plane import phpfile

    assert '"{\\$a}"' in phpfile.__doc__
