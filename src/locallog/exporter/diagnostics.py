"""Contadores internos de diagnóstico no padrão Prometheus.

Falhas engolidas no caminho de escrita continuam visíveis aqui. Os
contadores vivem num `CollectorRegistry` próprio do módulo; nenhum servidor
HTTP é iniciado.
"""

import logging

from prometheus_client import CollectorRegistry, Counter, generate_latest

logger = logging.getLogger(__name__)

REGISTRY = CollectorRegistry(auto_describe=True)

WRITE_FAILURES = Counter(
    "locallog_write_failures",
    "Falhas engolidas ao anexar linhas de log",
    registry=REGISTRY,
)
PURGED_FILES = Counter(
    "locallog_purged_files",
    "Ficheiros removidos pela limpeza de retenção",
    registry=REGISTRY,
)
EXPORTS = Counter(
    "locallog_exports",
    "Exportações concluídas",
    ["kind"],
    registry=REGISTRY,
)


def record_write_failure(exc: BaseException | None = None) -> None:
    WRITE_FAILURES.inc()
    if exc is not None:
        logger.debug("falha de escrita registrada: %s", exc)


def record_purge(removed: int) -> None:
    if removed > 0:
        PURGED_FILES.inc(removed)


def record_export(kind: str) -> None:
    EXPORTS.labels(kind=kind).inc()


def _sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels or {})
    return float(value or 0.0)


def snapshot() -> dict:
    """Retorna os valores atuais dos contadores como dict simples."""
    return {
        "write_failures": _sample("locallog_write_failures_total"),
        "purged_files": _sample("locallog_purged_files_total"),
        "exports_plain": _sample("locallog_exports_total", {"kind": "plain"}),
        "exports_encrypted": _sample("locallog_exports_total", {"kind": "encrypted"}),
    }


def render() -> str:
    """Exposição em texto (formato Prometheus) dos contadores."""
    return generate_latest(REGISTRY).decode("utf-8")
