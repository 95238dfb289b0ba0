"""Agendamento oportunista da limpeza por retenção.

O marcador "última limpeza" vive apenas em memória: reiniciar o processo
reinicia o temporizador, mas não altera o corte de retenção, que é calculado
a partir do relógio de parede a cada limpeza.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)


def purge_due(now: float, last_purge: float | None, interval: float) -> bool:
    """Return True quando a limpeza oportunista deve correr.

    Um intervalo 0 desativa a limpeza oportunista; `last_purge` None equivale a
    "nunca limpou".
    """
    if interval <= 0:
        return False
    if last_purge is None:
        return True
    return (now - last_purge) >= interval


def _maintenance_purge(
    now: float,
    last_purge: float | None,
    interval: float,
    purge: Callable[[float], int],
) -> float | None:
    """Execute `purge(now)` quando o intervalo for atingido.

    Retorna o novo timestamp de `last_purge` (usado para agendamento). Falhas
    da limpeza são registradas e não propagam.
    """
    if not purge_due(now, last_purge, interval):
        return last_purge
    try:
        removed = purge(now)
        if removed:
            logger.debug("limpeza oportunista removeu %d ficheiro(s)", removed)
    except OSError as exc:
        logger.warning("Falha ao remover ficheiros antigos: %s", exc)
    return now
