import os
from datetime import datetime, timezone
from pathlib import Path

from locallog.system import retention as retention_mod


def _make(tmp_path, name, mtime):
    p = tmp_path / name
    p.write_text("x")
    os.utime(p, (mtime, mtime))
    return p


def test_purge_removes_only_strictly_older(tmp_path):
    """Remove iff timestamp < referência - duração."""
    now = 10_000.0
    old = _make(tmp_path, "old.log", 8_999)
    edge = _make(tmp_path, "edge.log", 9_000)  # exatamente no corte: mantém
    fresh = _make(tmp_path, "fresh.log", 9_500)

    removed = retention_mod.purge_expired([fresh, old, edge], now, 1_000)
    assert removed == 1
    assert not old.exists()
    assert edge.exists() and fresh.exists()


def test_purge_accepts_datetime_reference(tmp_path):
    """A referência pode ser datetime."""
    old = _make(tmp_path, "old.log", 100)
    ref = datetime.fromtimestamp(1_000, tz=timezone.utc)
    assert retention_mod.purge_expired([old], ref, 10) == 1


def test_purge_skips_files_without_timestamp(tmp_path, monkeypatch):
    """Ficheiros sem timestamp descobrível nunca são removidos."""
    p = _make(tmp_path, "nots.log", 1)
    monkeypatch.setattr(retention_mod, "file_timestamp", lambda path: None)
    assert retention_mod.purge_expired([p], 10_000, 1) == 0
    assert p.exists()


def test_purge_missing_file_is_not_counted(tmp_path):
    """Ficheiro já removido conta como não removido."""
    assert retention_mod.purge_expired([tmp_path / "ghost.log"], 10_000, 1) == 0


def test_purge_delete_failure_does_not_abort(tmp_path, monkeypatch):
    """Falha ao remover um ficheiro não interrompe a limpeza."""
    a = _make(tmp_path, "a.log", 1)
    b = _make(tmp_path, "b.log", 1)
    real_unlink = Path.unlink

    def fake_unlink(self, missing_ok=False):
        if self.name == "a.log":
            raise PermissionError("denied")
        return real_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", fake_unlink)
    removed = retention_mod.purge_expired([a, b], 10_000, 1)
    assert removed == 1
    assert a.exists()
    assert not b.exists()


def test_zero_retention_uses_reference_as_cutoff(tmp_path):
    """Com duração 0 o corte é a própria referência."""
    p = _make(tmp_path, "p.log", 500)
    assert retention_mod.purge_expired([p], 500, 0) == 0
    assert retention_mod.purge_expired([p], 501, 0) == 1
