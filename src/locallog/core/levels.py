"""Níveis de severidade do logger local.

Enumeração ordenada usada apenas para comparações de threshold; o valor
persistido em disco é sempre o nome em maiúsculas.
"""

from enum import IntEnum


class LogLevel(IntEnum):
    """Severidade ordenada: trace < debug < info < warning < error < fault."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4
    FAULT = 5

    @property
    def upper_name(self) -> str:
        return self.name


# Auxilia config/CLI; aceita nomes, aliases comuns e inteiros
def parse_level(raw) -> LogLevel:
    """Converte `raw` (LogLevel, int ou string) em `LogLevel`.

    Aceita nomes sem distinção de maiúsculas e os aliases `warn` e `critical`.
    Levanta ValueError para valores desconhecidos.
    """
    if isinstance(raw, LogLevel):
        return raw
    if isinstance(raw, int):
        return LogLevel(raw)
    name = str(raw or "").strip().upper()
    aliases = {"WARN": "WARNING", "CRITICAL": "FAULT", "FATAL": "FAULT"}
    name = aliases.get(name, name)
    try:
        return LogLevel[name]
    except KeyError as exc:
        raise ValueError(f"nível de log desconhecido: {raw!r}") from exc
