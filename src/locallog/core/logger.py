"""Fachada do logger local.

Serializa todas as operações (append, rotação, limpeza e exportação) num
único contexto de execução por instância. O contexto é um ``RLock``: chamadas
reentrantes feitas de dentro do próprio contexto executam inline em vez de
bloquear.

Política de erros:

- ``log`` nunca propaga falhas; elas são contadas em
  ``locallog.exporter.diagnostics`` e entregues ao hook ``on_write_error``.
- a limpeza é best-effort por ficheiro.
- as exportações levantam exceções de ``locallog.core.errors``.
"""

import asyncio
import logging
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from ..archive.encrypted import EncryptedArchiver, default_encrypted_archiver
from ..archive.export import export_encrypted, export_plain
from ..config.settings import LoggerConfig
from ..exporter import diagnostics
from ..system.log_helpers import build_human_line, format_timestamp
from ..system.maintenance import _maintenance_purge
from ..system.retention import purge_expired
from ..system.selection import DateInterval, select_files
from ..system.writer import RotatingWriter
from .errors import EmptySelectionError, InvalidPasswordError, LogIOError, UnsupportedFeatureError
from .levels import LogLevel, parse_level

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocalLogger:
    """Logger estruturado em ficheiros rotativos, com retenção e exportação."""

    def __init__(
        self,
        config: LoggerConfig | None = None,
        *,
        encrypted_archiver: EncryptedArchiver | None = None,
        on_write_error: Callable[[BaseException], None] | None = None,
        console_stream=None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._config = config if config is not None else LoggerConfig()
        self._writer = RotatingWriter(self._config)
        self._encrypted_archiver = (
            encrypted_archiver if encrypted_archiver is not None else default_encrypted_archiver()
        )
        self._on_write_error = on_write_error
        self._console_stream = console_stream
        self._clock = clock
        self._lock = threading.RLock()
        # em memória: reinicia com o processo
        self._last_purge: float | None = None

    @property
    def config(self) -> LoggerConfig:
        return self._config

    @property
    def last_purge(self) -> float | None:
        """Epoch da última limpeza executada nesta instância (None = nunca)."""
        return self._last_purge

    # ========================
    # 1. Escrita
    # ========================

    def log(self, level, message, metadata: dict | None = None) -> None:
        """Formata e anexa uma linha; nunca levanta.

        `message` pode ser um callable sem argumentos, avaliado dentro do
        contexto serializado. A linha é espelhada no console quando habilitado
        e ``level >= console_minimum_level``.
        """
        with self._lock:
            try:
                level = parse_level(level)
                if callable(message):
                    message = message()
                now = self._clock()
                line = build_human_line(format_timestamp(now), level.upper_name, message, metadata)
            except Exception as exc:  # a mensagem do chamador nunca derruba o host
                self._report_write_failure(exc)
                return

            if self._config.console_enabled and level >= self._config.console_minimum_level:
                self._console_write(line)

            try:
                self._writer.write(line)
            except (OSError, ValueError) as exc:
                self._report_write_failure(exc)
                return

            self._last_purge = _maintenance_purge(
                now.timestamp(),
                self._last_purge,
                self._config.auto_purge_interval_seconds,
                self._purge_locked,
            )

    def trace(self, message, metadata: dict | None = None) -> None:
        self.log(LogLevel.TRACE, message, metadata)

    def debug(self, message, metadata: dict | None = None) -> None:
        self.log(LogLevel.DEBUG, message, metadata)

    def info(self, message, metadata: dict | None = None) -> None:
        self.log(LogLevel.INFO, message, metadata)

    def warning(self, message, metadata: dict | None = None) -> None:
        self.log(LogLevel.WARNING, message, metadata)

    def error(self, message, metadata: dict | None = None) -> None:
        self.log(LogLevel.ERROR, message, metadata)

    def fault(self, message, metadata: dict | None = None) -> None:
        self.log(LogLevel.FAULT, message, metadata)

    def set_console_minimum_level(self, level) -> None:
        with self._lock:
            self._config = self._config.replace(console_minimum_level=parse_level(level))

    def flush(self) -> None:
        """Força a persistência do ficheiro corrente; falhas são engolidas."""
        with self._lock:
            try:
                self._writer.flush()
            except OSError as exc:
                logger.debug("flush: falha ao sincronizar: %s", exc, exc_info=True)

    def close(self) -> None:
        with self._lock:
            self._writer.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def list_log_files(self) -> list[Path]:
        """Lista os ficheiros de log existentes (sem ordem definida)."""
        with self._lock:
            try:
                return self._writer.list_log_files()
            except OSError as exc:
                raise LogIOError(f"falha ao listar {self._config.logs_directory}: {exc}") from exc

    # ========================
    # 2. Retenção
    # ========================

    def purge_expired_logs(self) -> int:
        """Executa a limpeza imediatamente, ignorando o temporizador.

        Atualiza o marcador de última limpeza e retorna o número de ficheiros
        removidos.
        """
        with self._lock:
            now = self._clock().timestamp()
            removed = self._purge_locked(now)
            self._last_purge = now
            return removed

    def _purge_locked(self, reference_ts: float) -> int:
        retention = self._config.retention_seconds
        if retention <= 0:
            return 0
        try:
            files = self._writer.list_log_files()
        except OSError as exc:
            logger.debug("_purge_locked: falha ao listar ficheiros: %s", exc, exc_info=True)
            return 0
        removed = purge_expired(files, reference_ts, retention)
        diagnostics.record_purge(removed)

        current = self._writer.current_path
        if current is not None and not current.exists():
            # o ficheiro aberto foi removido: a próxima escrita abre outro
            self._writer.close()
        return removed

    # ========================
    # 3. Exportação
    # ========================

    def _select_locked(self, interval: DateInterval) -> list[Path]:
        try:
            files = self._writer.list_log_files()
        except OSError as exc:
            raise LogIOError(f"falha ao listar {self._config.logs_directory}: {exc}") from exc
        selected = select_files(files, interval)
        if not selected:
            raise EmptySelectionError(
                f"nenhum log entre {interval.start.isoformat()} e {interval.end.isoformat()}"
            )
        return selected

    def export_logs(self, interval: DateInterval) -> Path:
        """Exporta os logs do intervalo num archive ZIP e retorna o caminho.

        Levanta EmptySelectionError quando nenhum ficheiro se qualifica e
        LogIOError em falhas de leitura/escrita; nada é publicado em falha.
        """
        with self._lock:
            selected = self._select_locked(interval)
            try:
                path = export_plain(selected, interval, self._writer.file_prefix, self._config.export_directory)
            except OSError as exc:
                raise LogIOError(f"falha ao exportar logs: {exc}") from exc
            diagnostics.record_export("plain")
            return path

    def export_encrypted_logs(self, interval: DateInterval, password: str) -> Path:
        """Exporta os logs do intervalo num archive cifrado por senha.

        Senha vazia falha com InvalidPasswordError antes de qualquer acesso ao
        sistema de ficheiros; sem a capacidade, UnsupportedFeatureError.
        """
        if not password:
            raise InvalidPasswordError("senha vazia para exportação cifrada")
        if not getattr(self._encrypted_archiver, "available", False):
            raise UnsupportedFeatureError("exportação cifrada indisponível nesta plataforma")
        with self._lock:
            selected = self._select_locked(interval)
            try:
                path = export_encrypted(
                    selected,
                    interval,
                    self._writer.file_prefix,
                    self._config.export_directory,
                    password,
                    self._encrypted_archiver,
                )
            except OSError as exc:
                raise LogIOError(f"falha ao exportar logs cifrados: {exc}") from exc
            diagnostics.record_export("encrypted")
            return path

    # ========================
    # 4. Variantes assíncronas
    # ========================

    async def flush_async(self) -> None:
        await asyncio.to_thread(self.flush)

    async def purge_expired_logs_async(self) -> int:
        return await asyncio.to_thread(self.purge_expired_logs)

    async def export_logs_async(self, interval: DateInterval) -> Path:
        return await asyncio.to_thread(self.export_logs, interval)

    async def export_encrypted_logs_async(self, interval: DateInterval, password: str) -> Path:
        return await asyncio.to_thread(self.export_encrypted_logs, interval, password)

    # ========================
    # 5. Auxiliares
    # ========================

    def _console_write(self, line: str) -> None:
        stream = self._console_stream if self._console_stream is not None else sys.stderr
        try:
            stream.write(line + "\n")
            stream.flush()
        except (OSError, ValueError) as exc:
            logger.debug("_console_write: falha ao espelhar no console: %s", exc)

    def _report_write_failure(self, exc: BaseException) -> None:
        logger.debug("log: falha de escrita engolida: %s", exc, exc_info=True)
        diagnostics.record_write_failure(exc)
        if self._on_write_error is None:
            return
        try:
            self._on_write_error(exc)
        except Exception as hook_exc:
            logger.debug("on_write_error falhou: %s", hook_exc, exc_info=True)
