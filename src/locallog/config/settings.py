"""Configurações do logger local.

Este módulo centraliza os defaults do logger e permite overrides via
arquivo ``.env`` ou variáveis de ambiente (prefixo ``LOCALLOG_*``).
As funções públicas principais são:

- ``LoggerConfig`` -> valor imutável por sessão, com pisos aplicados.
- ``load_config()`` -> ``LoggerConfig`` combinando DEFAULTS + .env + ambiente.

Comentários e mensagens de log estão em português.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field, replace as _dc_replace
from pathlib import Path

from ..core.levels import LogLevel, parse_level

logger = logging.getLogger(__name__)

# ========================
# Constantes e padrões globais
# ========================

MIN_FILE_SIZE_BYTES = 4096
DEFAULT_MAX_FILE_SIZE_BYTES = 1_048_576
DEFAULT_RETENTION_SECONDS = 7 * 24 * 60 * 60
DEFAULT_AUTO_PURGE_INTERVAL_SECONDS = 60
DEFAULT_FILE_PREFIX = "locallog"
LOG_SUFFIX = ".log"

ENV_PREFIX = "LOCALLOG_"


# Diretório padrão: cache do utilizador, com fallback para o temp do sistema
def default_logs_directory() -> Path:
    """Retorna `<cache do utilizador>/LocalLogger`.

    Usa ``XDG_CACHE_HOME`` quando definido, senão ``~/.cache``; se o home não
    puder ser resolvido, cai para o diretório temporário do sistema.
    """
    xdg = os.getenv("XDG_CACHE_HOME")
    try:
        base = Path(xdg) if xdg else Path.home() / ".cache"
    except RuntimeError:
        base = Path(tempfile.gettempdir())
    return base / "LocalLogger"


def _default_export_directory() -> Path:
    return Path(tempfile.gettempdir())


@dataclass(frozen=True)
# Valor imutável por sessão; consumido pelo writer, retenção e exportação
class LoggerConfig:
    """Configuração de uma instância do logger.

    Os pisos são aplicados na construção: ``max_file_size_bytes`` >= 4096,
    ``retention_seconds`` >= 0 e ``auto_purge_interval_seconds`` >= 0.
    Uma retenção 0 desativa a limpeza; um intervalo 0 desativa apenas a
    limpeza oportunista.
    """

    logs_directory: Path = field(default_factory=default_logs_directory)
    console_enabled: bool = True
    console_minimum_level: LogLevel = LogLevel.INFO
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    retention_seconds: float = DEFAULT_RETENTION_SECONDS
    auto_purge_interval_seconds: float = DEFAULT_AUTO_PURGE_INTERVAL_SECONDS
    file_prefix: str = DEFAULT_FILE_PREFIX
    export_directory: Path = field(default_factory=_default_export_directory)
    durable_writes: bool = True

    def __post_init__(self):
        # frozen: normalização via object.__setattr__
        object.__setattr__(self, "logs_directory", Path(self.logs_directory))
        object.__setattr__(self, "export_directory", Path(self.export_directory))
        object.__setattr__(self, "console_minimum_level", parse_level(self.console_minimum_level))
        object.__setattr__(self, "max_file_size_bytes", max(MIN_FILE_SIZE_BYTES, int(self.max_file_size_bytes)))
        object.__setattr__(self, "retention_seconds", max(0.0, float(self.retention_seconds)))
        object.__setattr__(
            self, "auto_purge_interval_seconds", max(0.0, float(self.auto_purge_interval_seconds))
        )
        prefix = str(self.file_prefix or "").strip() or DEFAULT_FILE_PREFIX
        object.__setattr__(self, "file_prefix", prefix)

    def replace(self, **changes) -> "LoggerConfig":
        """Retorna uma cópia com `changes` aplicados (pisos reaplicados)."""
        return _dc_replace(self, **changes)


# ========================
# 1. Carregamento das configurações
# ========================

# nome do campo -> (variável de ambiente, conversor)
_ENV_FIELDS = {
    "logs_directory": ("LOCALLOG_LOG_ROOT", Path),
    "console_enabled": ("LOCALLOG_CONSOLE", None),
    "console_minimum_level": ("LOCALLOG_CONSOLE_LEVEL", parse_level),
    "max_file_size_bytes": ("LOCALLOG_MAX_FILE_SIZE_BYTES", int),
    "retention_seconds": ("LOCALLOG_RETENTION_SECONDS", float),
    "auto_purge_interval_seconds": ("LOCALLOG_AUTO_PURGE_INTERVAL_SECONDS", float),
    "file_prefix": ("LOCALLOG_FILE_PREFIX", str),
    "export_directory": ("LOCALLOG_EXPORT_DIR", Path),
    "durable_writes": ("LOCALLOG_DURABLE_WRITES", None),
}


def _parse_bool(raw: str) -> bool:
    val = str(raw).strip().lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"booleano inválido: {raw!r}")


# Função principal do módulo; carrega a configuração do ambiente
def load_config(env_file: Path | str | None = None, **overrides) -> LoggerConfig:
    """Carrega configuração combinando DEFAULTS + .env + ambiente.

    As variáveis do processo sobrescrevem o arquivo `.env`; `overrides`
    (argumentos nomeados, ex. vindos da CLI) sobrescrevem ambos. Valores
    inválidos são registrados como warning e ignorados.
    """
    env_path = Path(env_file) if env_file is not None else Path(os.getenv("LOCALLOG_ENV_FILE", ".env"))
    env_items = _merge_env_items(env_path)

    kwargs: dict = {}
    for name, (env_var, convert) in _ENV_FIELDS.items():
        raw = env_items.get(env_var)
        if raw is None or str(raw).strip() == "":
            continue
        try:
            kwargs[name] = _parse_bool(raw) if convert is None else convert(raw)
        except (TypeError, ValueError):
            logger.warning("Valor inválido para %s: %s", env_var, raw)

    for name, value in overrides.items():
        if value is not None:
            kwargs[name] = value
    return LoggerConfig(**kwargs)


# ========================
# 2. Funções auxiliares para ambiente
# ========================


# Auxilia load_config; criado para centralizar leitura do .env
def _read_env_file(path: Path | str) -> dict:
    """Lê um arquivo `.env` e devolve um dicionário chave->valor.

    Linhas vazias e comentários (começando com '#') são ignorados.
    """
    result: dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return result
    try:
        with p.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, val = line.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                result[key] = val
    except OSError as exc:
        logger.debug("Falha ao ler .env em %s: %s", p, exc)
        return {}
    return result


# Auxilia load_config; criado para unir variáveis do ambiente e .env
def _merge_env_items(env_path: Path) -> dict:
    """Retorna um mapeamento combinado de `.env` e env vars do processo.

    Apenas chaves com prefixo ``LOCALLOG_`` são consideradas; as variáveis do
    processo sobrescrevem o arquivo `.env`.
    """
    env_items = {k: v for k, v in _read_env_file(env_path).items() if k.startswith(ENV_PREFIX)}
    env_items.update({k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)})
    return env_items
