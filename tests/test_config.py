import logging

import pytest

import cognify.config as config
from cognify.app import AppContext
from cognify.interview.testing import MockProvider, make_profile
from cognify.utils import mean_score, round_half_up, setup_logging, with_suppressed_audio_warnings


def test_mode_catalogue_counts():
    counts = {m.id: m.count for m in config.INTERVIEW_MODES}
    assert counts == {"Quick": 5, "Full": 20, "Technical": 10, "Behavioral": 8, "System Design": 5, "Mixed": 12}
    assert config.get_mode("Nope").id == "Quick"


def test_get_config_requires_a_project(monkeypatch):
    monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
    with pytest.raises(ValueError):
        config.get_config()


def test_get_config_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "demo-project")
    monkeypatch.setenv("COGNIFY_WORKDIR", str(tmp_path))
    monkeypatch.setenv("COGNIFY_LOG_LEVEL", "DEBUG")
    cfg = config.get_config()
    assert cfg.google_cloud_project == "demo-project"
    assert cfg.workdir == str(tmp_path)
    assert cfg.log_file == str(tmp_path / "cognify.log")
    assert cfg.log_level == "DEBUG"
    assert cfg.question_time_budget == 180


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(80.5) == 81
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2
    assert mean_score([]) == 0
    assert mean_score([80, 70, 90, 60, 100]) == 80


def test_setup_logging_writes_to_file_and_replaces_its_own_handlers(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    log_file = tmp_path / "logs" / "cognify.log"
    setup_logging(str(log_file))
    logging.getLogger("sequencer").info("hello from the test")
    for handler in root.handlers:
        handler.flush()
    assert "hello from the test" in log_file.read_text()

    setup_logging(str(tmp_path / "other.log"), "info")
    added = [h for h in root.handlers if h not in before]
    try:
        assert len(added) == 2
        file_handlers = [h for h in added if isinstance(h, logging.FileHandler)]
        assert [h.baseFilename for h in file_handlers] == [str(tmp_path / "other.log")]
        assert file_handlers[0].level == logging.INFO
    finally:
        for handler in added:
            root.removeHandler(handler)
            handler.close()


def test_setup_logging_rejects_unknown_level(tmp_path):
    with pytest.raises(ValueError):
        setup_logging(str(tmp_path / "cognify.log"), "LOUD")


def test_app_context_persists_changes(tmp_path, store):
    cfg = config.Config(google_cloud_project="demo", workdir=store.workdir)
    ctx = AppContext(cfg, store=store, provider=MockProvider())
    assert ctx.profile is None
    assert ctx.theme == config.DEFAULT_THEME

    ctx.profile = make_profile(name="Lin")
    ctx.theme = "pro-dark"
    with pytest.raises(ValueError):
        ctx.theme = "neon"

    reloaded = AppContext(cfg, store=store, provider=MockProvider())
    assert reloaded.profile.name == "Lin"
    assert reloaded.theme == "pro-dark"


def test_suppressed_audio_warnings_keeps_return_value_and_name():
    @with_suppressed_audio_warnings
    def open_device(rate):
        """Open the device."""
        return rate * 2

    assert open_device(8000) == 16000
    assert open_device.__name__ == "open_device"
    assert open_device.__doc__ == "Open the device."
