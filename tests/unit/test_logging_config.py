import logging

from app.core.logging_config import log_file_prefix, setup_logging


def test_log_file_prefix():
    assert log_file_prefix("GymCheckin") == "gymcheckin"
    assert log_file_prefix("Gym Checkin API") == "gym_checkin_api"
    assert log_file_prefix("   ") == "app"


def test_setup_logging_writes_project_log_and_quiets_drivers(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level

    try:
        setup_logging()
        log_files = [p.name for p in (tmp_path / "logs").iterdir()]
        assert len(log_files) == 1
        assert log_files[0].startswith("gymcheckin_")
        assert logging.getLogger("aiosqlite").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
