"""Pacote system: escrita rotativa, retenção e seleção de ficheiros de log.

Re-exports úteis dos helpers mais usados.
"""

from .log_helpers import build_human_line, format_timestamp

__all__ = ["build_human_line", "format_timestamp"]
