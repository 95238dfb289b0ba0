"""Helpers de baixo nível para o subsistema de logging.

Fornece formatação de linhas, escrita durável com lock, descoberta do
timestamp de ficheiros e publicação atômica de bytes em disco.
"""

from pathlib import Path
import os
from datetime import datetime, timezone
import logging

import portalocker

logger = logging.getLogger(__name__)


# -----------------------
# Normalização e formatação
# -----------------------
def format_timestamp(dt: datetime | None = None) -> str:
    """Retorna ISO-8601 em UTC com milissegundos e sufixo 'Z'.

    Ex.: ``2025-10-17T12:00:00.123Z``. Datas sem timezone são tratadas como UTC.
    """
    if dt is None:
        dt = datetime.now(timezone.utc)
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_message_for_human(msg) -> str:
    """Normalize uma mensagem para uma única linha, removendo novas linhas."""
    try:
        s = "" if msg is None else str(msg)
    except (TypeError, ValueError):
        s = "<unrepr>"
    return s.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def build_human_line(ts: str, level: str, msg_str: str, metadata: dict | None = None) -> str:
    """Compõe a linha persistida (sem o terminador de linha).

    Formato: ``[<ts>] [<LEVEL>] <msg>`` seguido de `` k=v`` ordenados por chave
    quando `metadata` não estiver vazio.
    """
    line = f"[{ts}] [{level}] {normalize_message_for_human(msg_str)}"
    if metadata:
        kvs = []
        for k in sorted(metadata, key=str):
            sval = normalize_message_for_human(metadata[k])
            kvs.append(f"{k}={sval}")
        line = f"{line} {' '.join(kvs)}"
    return line


def sanitize_file_prefix(raw: str, fallback: str = "locallog") -> str:
    """Remove separadores de caminho do prefixo de ficheiro."""
    name = Path(raw or fallback).name.lstrip(".")
    return name or fallback


# -----------------------
# Escrita segura
# -----------------------
def append_bytes(fh, data: bytes, durable: bool = False) -> None:
    """Anexe `data` ao handle aberto `fh`, usando lock exclusivo e fsync opcional.

    Falhas do lock e do fsync são registradas em debug e não interrompem a
    escrita; falhas da própria escrita propagam como OSError.
    """
    locked = False
    try:
        try:
            portalocker.lock(fh, portalocker.LOCK_EX)
            locked = True
        except (portalocker.LockException, OSError) as exc:
            logger.debug("append_bytes: portalocker.lock falhou em %s: %s", getattr(fh, "name", fh), exc)

        fh.write(data)
        fh.flush()

        if durable:
            sync_handle(fh)
    finally:
        if locked:
            try:
                portalocker.unlock(fh)
            except (portalocker.LockException, OSError) as exc:
                logger.debug("append_bytes: portalocker.unlock falhou em %s: %s", getattr(fh, "name", fh), exc)


def sync_handle(fh) -> None:
    """Força a persistência dos bytes bufferizados em `fh` (flush + fsync)."""
    fh.flush()
    try:
        os.fsync(fh.fileno())
    except OSError as exc:
        logger.debug("sync_handle: fsync falhou em %s: %s", getattr(fh, "name", fh), exc)


def publish_bytes(dst: Path, data: bytes) -> Path:
    """Grava `data` em `dst` via ficheiro temporário + replace atômico.

    Um `dst` preexistente é substituído. Em falha o temporário é removido e o
    OSError propaga; `dst` nunca fica com conteúdo parcial.
    """
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_name(dst.name + f".{os.getpid()}.tmp")
    try:
        with tmp.open("wb") as fh:
            fh.write(data)
            sync_handle(fh)
        os.replace(str(tmp), str(dst))
        return dst
    except OSError as exc:
        logger.error("publish_bytes: falha ao publicar %s: %s", dst, exc, exc_info=True)
        tmp.unlink(missing_ok=True)
        raise


# -----------------------
# Verificação de idade
# -----------------------
def file_timestamp(p: Path) -> float | None:
    """Retorna o mtime de `p` (fallback: data de criação) em epoch segundos.

    Retorna None quando nenhum dos dois estiver disponível.
    """
    try:
        st = p.stat()
    except OSError as exc:
        logger.debug("file_timestamp: falha ao acessar %s: %s", p, exc)
        return None
    mtime = getattr(st, "st_mtime", None)
    if mtime is not None:
        return float(mtime)
    birth = getattr(st, "st_birthtime", None)
    if birth is not None:
        return float(birth)
    return None
