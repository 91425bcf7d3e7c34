import pytest

from conftest import read_json, write_json
from i18nkey.cli import main

KEY = "components.pages.dashboard.saveChanges"


@pytest.fixture
def workspace(tmp_path):
    write_json(tmp_path / ".i18nkey.json", {
        "translationFilePaths": ["i18n/en.json", "i18n/tr.json"],
        "sourceLanguageFile": "i18n/en.json",
        "languageFileLanguages": {"i18n/en.json": "en", "i18n/tr.json": "tr"},
    })
    return tmp_path


@pytest.fixture
def doc(workspace):
    path = workspace / "components" / "pages" / "Dashboard.tsx"
    path.parent.mkdir(parents=True)
    path.write_text("<button>Save Changes</button>\n", encoding="utf-8")
    return path


def test_key_command(workspace, doc, capsys):
    code = main(["--workspace", str(workspace), "key", "Save Changes", "--file", str(doc)])
    assert code == 0
    assert capsys.readouterr().out == KEY + "\n"


def test_generate_and_remove_in_place(workspace, doc, capsys):
    code = main(["--workspace", str(workspace), "generate", "Save Changes",
                 "--file", str(doc), "--in-place"])
    assert code == 0
    assert capsys.readouterr().out.strip() == f"t('{KEY}')"
    assert doc.read_text(encoding="utf-8") == f"<button>t('{KEY}')</button>\n"
    assert read_json(workspace / "i18n" / "tr.json") == \
        {"components": {"pages": {"dashboard": {"saveChanges": "Save Changes"}}}}

    code = main(["--workspace", str(workspace), "lookup", KEY])
    assert code == 0
    out = capsys.readouterr().out
    assert "en: Save Changes" in out
    assert "tr: Save Changes" in out

    code = main(["--workspace", str(workspace), "remove", f"t('{KEY}')",
                 "--file", str(doc), "--in-place"])
    assert code == 0
    assert capsys.readouterr().out.strip() == "Save Changes"
    assert doc.read_text(encoding="utf-8") == "<button>Save Changes</button>\n"


def test_explicit_config_path(tmp_path, capsys):
    config = tmp_path / "conf" / "i18n.json"
    write_json(config, {"translationFilePaths": ["en.json"], "translationFunction": "$t"})
    code = main(["--config", str(config), "generate", "Hello"])
    assert code == 0
    assert capsys.readouterr().out.strip() == "$t('components.pages.hello')"
    # relative paths resolve against the settings file's directory
    assert read_json(tmp_path / "conf" / "en.json") == {"components": {"pages": {"hello": "Hello"}}}


def test_handled_errors_exit_with_1(workspace, capsys):
    assert main(["--workspace", str(workspace), "generate", "  "]) == 1
    assert "No text selected" in capsys.readouterr().err

    assert main(["--workspace", str(workspace), "remove", "t('missing.key')"]) == 1
    assert "Translation key not found" in capsys.readouterr().err

    assert main(["--workspace", str(workspace), "lookup", "missing.key"]) == 1


def test_no_translation_files(tmp_path, capsys):
    assert main(["--workspace", str(tmp_path), "generate", "Hello"]) == 1
    assert "No translation files configured" in capsys.readouterr().err


def test_in_place_requires_file(workspace):
    with pytest.raises(SystemExit) as exc_info:
        main(["--workspace", str(workspace), "generate", "Hello", "--in-place"])
    assert exc_info.value.code == 2


def test_in_place_checks_document_before_writing(workspace, doc, capsys):
    code = main(["--workspace", str(workspace), "generate", "Cancel",
                 "--file", str(doc), "--in-place"])
    assert code == 1
    assert "Text not found" in capsys.readouterr().err
    assert not (workspace / "i18n").exists()
    assert doc.read_text(encoding="utf-8") == "<button>Save Changes</button>\n"


def test_in_place_remove_keeps_keys_when_call_is_absent(workspace, doc, capsys):
    write_json(workspace / "i18n" / "en.json", {"a": {"save": "Save"}})
    code = main(["--workspace", str(workspace), "remove", "t('a.save')",
                 "--file", str(doc), "--in-place"])
    assert code == 1
    assert "Text not found" in capsys.readouterr().err
    assert read_json(workspace / "i18n" / "en.json") == {"a": {"save": "Save"}}
