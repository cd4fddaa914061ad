import logging

import pytest

from gridzen.logging_setup import prune_sessions, session_files, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_stdout_only_without_log_dir(restore_root_logger):
    assert setup_logging() is None
    assert len(restore_root_logger.handlers) == 1
    assert restore_root_logger.level == logging.INFO


def test_session_file_receives_records(tmp_path, restore_root_logger):
    log_file = setup_logging(tmp_path / "logs", level=logging.DEBUG)
    assert log_file is not None
    assert log_file.parent == tmp_path / "logs"
    assert log_file.name.startswith("gridzen_")

    logging.getLogger("gridzen.test").warning("board fell back")
    for handler in restore_root_logger.handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "WARNING [gridzen.test] board fell back" in text


def test_repeated_setup_does_not_stack_handlers(tmp_path, restore_root_logger):
    setup_logging(tmp_path)
    setup_logging()
    assert len(restore_root_logger.handlers) == 1
    assert logging.getLogger("arcade").level == logging.WARNING


def test_old_sessions_are_pruned(tmp_path, restore_root_logger):
    for day in range(1, 6):
        (tmp_path / f"gridzen_2020-01-0{day}_10-00-00.log").write_text("old", encoding="utf-8")
    (tmp_path / "notes.log").write_text("keep me", encoding="utf-8")

    log_file = setup_logging(tmp_path, keep_sessions=3)

    names = [path.name for path in session_files(tmp_path)]
    assert names == ["gridzen_2020-01-04_10-00-00.log", "gridzen_2020-01-05_10-00-00.log", log_file.name]
    assert (tmp_path / "notes.log").exists()


def test_prune_reports_removed_files(tmp_path):
    for day in range(1, 4):
        (tmp_path / f"gridzen_2026-02-0{day}_08-00-00.log").write_text("", encoding="utf-8")
    removed = prune_sessions(tmp_path, keep=1)
    assert [path.name for path in removed] == [
        "gridzen_2026-02-01_08-00-00.log",
        "gridzen_2026-02-02_08-00-00.log",
    ]
    assert len(session_files(tmp_path)) == 1
