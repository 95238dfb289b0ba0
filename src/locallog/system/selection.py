"""Seleção de ficheiros de log por intervalo de tempo.

A ordem produzida aqui é a ordem das entradas no archive exportado.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable

from .log_helpers import file_timestamp


def _to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class DateInterval:
    """Intervalo [start, end], inclusivo nas duas pontas.

    Datas sem timezone são tratadas como UTC. As comparações usam os epochs
    `start_ts`/`end_ts`; quando o intervalo vem de `from_timestamps` eles
    guardam os floats originais, sem o arredondamento para microssegundos
    do datetime.
    """

    start: datetime
    end: datetime
    start_ts: float = field(default=None, repr=False, compare=False)  # type: ignore[assignment]
    end_ts: float = field(default=None, repr=False, compare=False)  # type: ignore[assignment]

    def __post_init__(self):
        start = _to_utc(self.start)
        end = _to_utc(self.end)
        start_ts = float(self.start_ts) if self.start_ts is not None else start.timestamp()
        end_ts = float(self.end_ts) if self.end_ts is not None else end.timestamp()
        if end_ts < start_ts:
            raise ValueError(f"intervalo inválido: end ({end.isoformat()}) < start ({start.isoformat()})")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        object.__setattr__(self, "start_ts", start_ts)
        object.__setattr__(self, "end_ts", end_ts)

    @classmethod
    def from_timestamps(cls, start_ts: float, end_ts: float) -> "DateInterval":
        return cls(
            datetime.fromtimestamp(start_ts, tz=timezone.utc),
            datetime.fromtimestamp(end_ts, tz=timezone.utc),
            start_ts=start_ts,
            end_ts=end_ts,
        )

    @classmethod
    def last(cls, seconds: float, now: datetime | None = None) -> "DateInterval":
        """Intervalo que termina em `now` (padrão: agora) e cobre `seconds`."""
        end = _to_utc(now) if now is not None else datetime.now(timezone.utc)
        return cls(end - timedelta(seconds=seconds), end)

    @property
    def start_epoch(self) -> int:
        return int(self.start_ts)

    @property
    def end_epoch(self) -> int:
        return int(self.end_ts)

    def contains(self, t) -> bool:
        """Aceita datetime ou epoch em segundos; inclusivo em ambas as pontas."""
        if isinstance(t, datetime):
            t = _to_utc(t).timestamp()
        return self.start_ts <= float(t) <= self.end_ts


def select_files(files: Iterable[Path], interval: DateInterval) -> list[Path]:
    """Filtra `files` pelo intervalo e ordena ascendente por timestamp.

    Usa mtime (fallback: criação); ficheiros sem timestamp são excluídos. A
    ordenação é estável para timestamps iguais.
    """
    stamped = []
    for p in files:
        p = Path(p)
        ts = file_timestamp(p)
        if ts is None or not interval.contains(ts):
            continue
        stamped.append((ts, p))
    stamped.sort(key=lambda item: item[0])
    return [p for _, p in stamped]
