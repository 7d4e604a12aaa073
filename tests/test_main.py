import json
from unittest.mock import MagicMock

import pytest
import structlog

from categorizer.errors import CategorizationFailedError
from categorizer.models import CategorizationResult, UploadedFile
from sorter import main as main_module
from sorter.session import SorterSession


@pytest.fixture
def stub_setup(monkeypatch):
    monkeypatch.setenv("API_KEY", "test_api_key")
    monkeypatch.delenv("DEFAULT_PROJECTS", raising=False)
    monkeypatch.delenv("DEFAULT_TAGS", raising=False)
    monkeypatch.setattr(main_module, "configure_logging", lambda settings: None)
    monkeypatch.setattr(main_module, "setup_libraries", lambda settings: None)
    # Keep log lines off stdout, which carries the JSON suggestion.
    structlog.configure(
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
    yield
    structlog.reset_defaults()


def install_provider(monkeypatch, result=None, error=None):
    calls = []

    class DummyProvider:
        def __init__(self, settings):
            self.settings = settings

        def categorize(self, file, projects, tags):
            calls.append((file.name, list(projects), list(tags)))
            if error is not None:
                raise error
            return result

    monkeypatch.setattr(main_module, "CategorizationProvider", DummyProvider)
    return calls


def test_main_exits_on_config_error(mocker, monkeypatch, tmp_path):
    logger = mocker.Mock()
    monkeypatch.setattr(
        main_module.structlog, "get_logger", mocker.Mock(return_value=logger)
    )
    monkeypatch.setattr(main_module, "Settings", mocker.Mock(side_effect=ValueError("bad")))
    provider_spy = mocker.Mock()
    monkeypatch.setattr(main_module, "CategorizationProvider", provider_spy)

    assert main_module.main([str(tmp_path / "notes.txt")]) == 1

    logger.error.assert_called_once()
    provider_spy.assert_not_called()


def test_main_prints_suggestion_as_json(stub_setup, monkeypatch, tmp_path, capsys):
    path = tmp_path / "notes.txt"
    path.write_text("pay by Friday", encoding="utf-8")
    calls = install_provider(
        monkeypatch, result=CategorizationResult("Work", ["Invoice"])
    )

    code = main_module.main([str(path), "-p", "Work", "-p", "Home", "-t", "Invoice"])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"project": "Work", "tags": ["Invoice"]}
    assert calls == [("notes.txt", ["Work", "Home"], ["Invoice"])]


def test_main_uses_default_lists(stub_setup, monkeypatch, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    calls = install_provider(monkeypatch, result=CategorizationResult("Work", []))

    assert main_module.main([str(path)]) == 0

    _, projects, tags = calls[0]
    assert projects == ["Work", "Personal", "Side-Project"]
    assert "Code Snippet" in tags


def test_main_reports_categorization_failure(stub_setup, monkeypatch, tmp_path, capsys):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    install_provider(monkeypatch, error=CategorizationFailedError())

    assert main_module.main([str(path)]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Failed to get categorization from the AI model" in captured.err


def test_main_rejects_unsupported_file(stub_setup, monkeypatch, tmp_path, capsys):
    path = tmp_path / "doc.pdf"
    path.write_bytes(b"%PDF-1.7")
    calls = install_provider(monkeypatch, result=CategorizationResult("Work", []))

    assert main_module.main([str(path)]) == 1

    assert "valid image or text file" in capsys.readouterr().err
    assert calls == []


def test_main_missing_file(stub_setup, monkeypatch, tmp_path, capsys):
    install_provider(monkeypatch, result=CategorizationResult("Work", []))

    assert main_module.main([str(tmp_path / "missing.txt")]) == 1

    assert "could not read" in capsys.readouterr().err


def test_main_review_confirms_edits(stub_setup, monkeypatch, tmp_path, capsys):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    install_provider(monkeypatch, result=CategorizationResult("Work", ["Urgent"]))
    answers = iter(["project Personal", "add Receipt", "remove Urgent", "confirm"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    code = main_module.main(
        [str(path), "--review", "-p", "Work", "-p", "Personal", "-t", "Urgent", "-t", "Receipt"]
    )

    assert code == 0
    last_line = capsys.readouterr().out.strip().splitlines()[-1]
    assert json.loads(last_line) == {"project": "Personal", "tags": ["Receipt"]}


def test_main_review_reject(stub_setup, monkeypatch, tmp_path, capsys):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    install_provider(monkeypatch, result=CategorizationResult("Work", []))
    monkeypatch.setattr("builtins.input", lambda prompt="": "reject")

    assert main_module.main([str(path), "--review"]) == 0

    assert "Suggestion rejected." in capsys.readouterr().err


def test_run_review_reports_invalid_edits_and_ends_on_eof():
    categorizer = MagicMock()
    categorizer.categorize.return_value = CategorizationResult("Work", [])
    session = SorterSession(categorizer, ["Work"], ["Urgent"])
    session.process_file(
        UploadedFile(
            name="n.txt", media_type="text/plain", size_bytes=1, content="x"
        )
    )
    lines = iter(["project Nope", "help"])
    output = []

    def read_line(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    assert main_module.run_review(session, read_line, output.append) is None

    assert "Unknown project: Nope" in output
    assert output.count(main_module.REVIEW_HELP) == 2
    assert session.file is None


def _reviewing_session(projects, tags, result):
    categorizer = MagicMock()
    categorizer.categorize.return_value = result
    session = SorterSession(categorizer, projects, tags)
    session.process_file(
        UploadedFile(name="n.txt", media_type="text/plain", size_bytes=1, content="x")
    )
    return session


def test_run_review_edits_allow_lists():
    session = _reviewing_session(
        ["Work"], ["Urgent"], CategorizationResult("Work", ["Urgent"])
    )
    lines = iter(
        [
            "add-project Home",
            "project Home",
            "remove-tag-option Urgent",
            "add-tag-option Receipt",
            "add Receipt",
            "remove-project Work",
            "confirm",
        ]
    )
    output = []

    confirmed = main_module.run_review(session, lambda prompt: next(lines), output.append)

    assert confirmed == CategorizationResult("Home", ["Receipt"])
    assert session.projects.as_list() == ["Home"]
    assert session.tags.as_list() == ["Receipt"]
    assert "Available projects: Work, Home" in output


def test_run_review_shows_empty_list_messages():
    session = _reviewing_session(
        ["Work"], ["Urgent"], CategorizationResult("Work", ["Urgent"])
    )
    lines = iter(["remove-tag-option Urgent", "remove-project Work", "confirm"])
    output = []

    confirmed = main_module.run_review(session, lambda prompt: next(lines), output.append)

    assert confirmed == CategorizationResult("Uncategorized", [])
    assert "No tags added yet." in output
    assert "No projects added yet." in output
