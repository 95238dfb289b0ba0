"""Remoção de ficheiros de log fora da janela de retenção."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .log_helpers import file_timestamp

logger = logging.getLogger(__name__)


def _as_epoch(reference) -> float:
    if isinstance(reference, datetime):
        return reference.timestamp()
    return float(reference)


def file_is_expired(p: Path, cutoff_ts: float) -> bool:
    """Return True se o timestamp de `p` for estritamente anterior a `cutoff_ts`.

    Ficheiros sem timestamp descobrível nunca expiram.
    """
    ts = file_timestamp(p)
    if ts is None:
        return False
    return ts < cutoff_ts


def purge_expired(files: Iterable[Path], reference, retention_seconds: float) -> int:
    """Remove ficheiros mais antigos que ``reference - retention_seconds``.

    `reference` aceita datetime ou epoch em segundos. A remoção é best-effort
    por ficheiro: uma falha é registrada e o ficheiro conta como não removido.
    Retorna o número de ficheiros removidos.
    """
    cutoff = _as_epoch(reference) - float(retention_seconds)
    removed = 0
    for p in files:
        p = Path(p)
        if not file_is_expired(p, cutoff):
            continue
        try:
            p.unlink()
        except OSError as exc:
            logger.error("purge_expired: falha ao remover %s: %s", p, exc, exc_info=True)
            continue
        removed += 1
        logger.info("purge_expired: removed %s", p)
    return removed
