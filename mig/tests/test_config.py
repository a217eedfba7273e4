from mig import MigConfig


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    config = MigConfig()

    assert config.LOG_LEVEL == "INFO"
    assert config.BIND_ADDR == "0.0.0.0:8080"
    assert config.SHUTDOWN_TIMEOUT == 10.0
    assert config.KEEP_ALIVE_TIMEOUT == 75
    assert config.POOL_MAX_IDLE == 0
    assert config.REDIRECT_SLASHES is True


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MIG_BIND_ADDR", ":9090")
    monkeypatch.setenv("MIG_POOL_MAX_IDLE", "16")
    monkeypatch.setenv("MIG_REDIRECT_SLASHES", "false")

    config = MigConfig()

    assert config.BIND_ADDR == ":9090"
    assert config.POOL_MAX_IDLE == 16
    assert config.REDIRECT_SLASHES is False


def test_env_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("MIG_LOG_LEVEL=DEBUG\nUNRELATED=1\n", encoding="utf-8")

    config = MigConfig()

    assert config.LOG_LEVEL == "DEBUG"
