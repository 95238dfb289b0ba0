from pathlib import Path

from locallog.config import settings
from locallog.core.levels import LogLevel


def _clear_env(monkeypatch):
    import os

    for k in list(os.environ):
        if k.startswith("LOCALLOG_"):
            monkeypatch.delenv(k, raising=False)


def test_defaults():
    """Defaults do logger."""
    cfg = settings.LoggerConfig()
    assert cfg.console_enabled is True
    assert cfg.console_minimum_level is LogLevel.INFO
    assert cfg.max_file_size_bytes == 1_048_576
    assert cfg.retention_seconds == 7 * 24 * 3600
    assert cfg.auto_purge_interval_seconds == 60
    assert cfg.file_prefix == "locallog"
    assert cfg.logs_directory.name == "LocalLogger"


def test_floors_applied():
    """Pisos: 4096 bytes e durações >= 0."""
    cfg = settings.LoggerConfig(max_file_size_bytes=10, retention_seconds=-5, auto_purge_interval_seconds=-1)
    assert cfg.max_file_size_bytes == 4096
    assert cfg.retention_seconds == 0
    assert cfg.auto_purge_interval_seconds == 0


def test_replace_reapplies_floors_and_keeps_original():
    """replace retorna cópia nova com pisos."""
    cfg = settings.LoggerConfig(file_prefix="a")
    other = cfg.replace(max_file_size_bytes=1, console_minimum_level="error")
    assert other.max_file_size_bytes == 4096
    assert other.console_minimum_level is LogLevel.ERROR
    assert cfg.console_minimum_level is LogLevel.INFO
    assert other.file_prefix == "a"


def test_blank_prefix_falls_back():
    assert settings.LoggerConfig(file_prefix="  ").file_prefix == "locallog"


def test_default_logs_directory_uses_xdg(monkeypatch, tmp_path):
    """XDG_CACHE_HOME define a base do diretório padrão."""
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    assert settings.default_logs_directory() == tmp_path / "LocalLogger"


def test_load_config_env_overrides_dotenv(monkeypatch, tmp_path):
    """Ambiente sobrescreve .env; overrides nomeados sobrescrevem ambos."""
    _clear_env(monkeypatch)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comentário\n"
        "LOCALLOG_FILE_PREFIX=fromfile\n"
        "LOCALLOG_MAX_FILE_SIZE_BYTES='8192'\n"
        "LOCALLOG_CONSOLE=false\n"
        "OTHER=ignored\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("LOCALLOG_MAX_FILE_SIZE_BYTES", "16384")
    monkeypatch.setenv("LOCALLOG_CONSOLE_LEVEL", "warn")

    cfg = settings.load_config(env_file, logs_directory=tmp_path / "logs")
    assert cfg.file_prefix == "fromfile"
    assert cfg.max_file_size_bytes == 16384
    assert cfg.console_enabled is False
    assert cfg.console_minimum_level is LogLevel.WARNING
    assert cfg.logs_directory == tmp_path / "logs"


def test_load_config_invalid_values_ignored(monkeypatch, tmp_path, caplog):
    """Valores inválidos geram warning e mantêm o default."""
    _clear_env(monkeypatch)
    monkeypatch.setenv("LOCALLOG_RETENTION_SECONDS", "abc")
    monkeypatch.setenv("LOCALLOG_DURABLE_WRITES", "maybe")
    with caplog.at_level("WARNING"):
        cfg = settings.load_config(tmp_path / "missing.env")
    assert cfg.retention_seconds == settings.DEFAULT_RETENTION_SECONDS
    assert cfg.durable_writes is True
    assert "LOCALLOG_RETENTION_SECONDS" in caplog.text


def test_load_config_none_overrides_are_skipped(monkeypatch, tmp_path):
    """Overrides None (ex. opções CLI ausentes) não apagam o ambiente."""
    _clear_env(monkeypatch)
    monkeypatch.setenv("LOCALLOG_FILE_PREFIX", "envprefix")
    cfg = settings.load_config(tmp_path / "none.env", file_prefix=None)
    assert cfg.file_prefix == "envprefix"


def test_read_env_file_missing_returns_empty(tmp_path):
    assert settings._read_env_file(Path(tmp_path / "nope.env")) == {}
