"""Pacote core: fachada do logger, níveis, erros e CLI.

A fachada vive em `locallog.core.logger`; aqui ficam apenas os níveis, para
que `config` possa importá-los sem ciclo.
"""

from .levels import LogLevel, parse_level

__all__ = ["LogLevel", "parse_level"]
