from dmosh.config import runtime_config


def test_defaults_when_unset(monkeypatch):
    for name in ("DMOSH_DEFAULT_TIMELINE_ID", "DMOSH_DEFAULT_SEED", "DMOSH_DEFAULT_FPS", "DMOSH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    assert runtime_config.get_default_timeline_id() == "timeline-1"
    assert runtime_config.get_default_seed() == 0
    assert runtime_config.get_default_fps() == 30.0
    assert runtime_config.get_log_level() == "INFO"


def test_values_from_env(monkeypatch):
    monkeypatch.setenv("DMOSH_DEFAULT_TIMELINE_ID", "main")
    monkeypatch.setenv("DMOSH_DEFAULT_SEED", "99")
    monkeypatch.setenv("DMOSH_DEFAULT_FPS", "24")
    monkeypatch.setenv("DMOSH_LOG_LEVEL", "debug")
    assert runtime_config.get_default_timeline_id() == "main"
    assert runtime_config.get_default_seed() == 99
    assert runtime_config.get_default_fps() == 24.0
    assert runtime_config.get_log_level() == "DEBUG"


def test_bad_values_fall_back(monkeypatch):
    monkeypatch.setenv("DMOSH_DEFAULT_SEED", "abc")
    monkeypatch.setenv("DMOSH_DEFAULT_FPS", "-5")
    assert runtime_config.get_default_seed() == 0
    assert runtime_config.get_default_fps() == 30.0


def test_default_timeline_id_is_read_per_instance(monkeypatch):
    from dmosh.timeline.models import Timeline

    monkeypatch.setenv("DMOSH_DEFAULT_TIMELINE_ID", "main")
    assert Timeline().id == "main"
    monkeypatch.delenv("DMOSH_DEFAULT_TIMELINE_ID")
    assert Timeline().id == "timeline-1"
