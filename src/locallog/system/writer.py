"""Escrita rotativa de ficheiros de log.

O writer mantém no máximo um ficheiro aberto para append. Quando a próxima
linha faria o ficheiro ultrapassar ``max_file_size_bytes`` o ficheiro atual é
fechado antes da escrita, e a linha vai inteira para um ficheiro novo.
"""

import logging
import time
import uuid
from pathlib import Path

from ..config.settings import LOG_SUFFIX, LoggerConfig
from .log_helpers import append_bytes, sanitize_file_prefix, sync_handle

logger = logging.getLogger(__name__)


class RotatingWriter:
    """Dono do ficheiro de log corrente; decide quando rotacionar.

    Estados: sem ficheiro aberto (``current_path is None``) ou ficheiro aberto
    com tamanho conhecido. Uma falha ao abrir deixa o writer sem ficheiro
    aberto; a próxima escrita tenta de novo.
    """

    def __init__(self, config: LoggerConfig):
        self.logs_directory = Path(config.logs_directory)
        self.file_prefix = sanitize_file_prefix(config.file_prefix)
        self.max_file_size_bytes = int(config.max_file_size_bytes)
        self.durable_writes = bool(config.durable_writes)

        self._fh = None
        self.current_path: Path | None = None
        self.current_size = 0
        self._last_stamp_ms = 0

    # ========================
    # 1. Escrita
    # ========================

    def write(self, line: str) -> Path:
        """Anexa ``line + "\\n"`` (UTF-8) ao ficheiro corrente.

        Cria o diretório e/ou um ficheiro novo quando necessário e retorna o
        caminho onde a linha foi gravada. Falhas propagam como OSError.
        """
        self._ensure_log_directory()
        # surrogates soltos (ex.: os.fsdecode) viram escapes em vez de falhar
        data = (line + "\n").encode("utf-8", errors="backslashreplace")
        self._rotate_if_needed(len(data))

        if self._fh is None:
            self._open_new_file()

        try:
            append_bytes(self._fh, data, durable=self.durable_writes)
        except OSError:
            # estado desconhecido após escrita parcial: força ficheiro novo
            logger.debug("write: falha ao escrever em %s; descartando handle", self.current_path, exc_info=True)
            self.close()
            raise
        self.current_size += len(data)
        return self.current_path  # type: ignore[return-value]

    def flush(self) -> None:
        """Força a persistência síncrona dos bytes bufferizados."""
        if self._fh is not None:
            sync_handle(self._fh)

    def close(self) -> None:
        """Fecha o ficheiro corrente e esquece o tamanho acumulado."""
        fh = self._fh
        self._fh = None
        self.current_path = None
        self.current_size = 0
        if fh is not None:
            try:
                fh.close()
            except OSError as exc:
                logger.debug("close: falha ao fechar handle: %s", exc, exc_info=True)

    # ========================
    # 2. Listagem
    # ========================

    def list_log_files(self) -> list[Path]:
        """Lista os ficheiros `.log` do diretório que começam com o prefixo.

        Sem ordem definida; ficheiros ocultos são ignorados.
        """
        self._ensure_log_directory()
        files = []
        for p in self.logs_directory.iterdir():
            name = p.name
            if name.startswith("."):
                continue
            if p.suffix != LOG_SUFFIX or not name.startswith(self.file_prefix):
                continue
            if not p.is_file():
                continue
            files.append(p)
        return files

    # ========================
    # 3. Rotação
    # ========================

    def _rotate_if_needed(self, incoming_bytes: int) -> None:
        if self._fh is None:
            return
        if self.current_size + incoming_bytes <= self.max_file_size_bytes:
            return
        logger.debug("rotacionando %s (%d + %d bytes)", self.current_path, self.current_size, incoming_bytes)
        self.close()

    def _open_new_file(self) -> None:
        path = self._make_new_file_path()
        # "xb": nunca reutiliza um nome existente
        fh = path.open("xb")
        self._fh = fh
        self.current_path = path
        self.current_size = 0

    def _make_new_file_path(self) -> Path:
        # milissegundos estritamente crescentes mesmo em rotações rápidas
        stamp = max(int(time.time() * 1000), self._last_stamp_ms + 1)
        self._last_stamp_ms = stamp
        name = f"{self.file_prefix}-{stamp}-{uuid.uuid4()}{LOG_SUFFIX}"
        return self.logs_directory / name

    def _ensure_log_directory(self) -> None:
        if self.logs_directory.is_dir():
            return
        self.logs_directory.mkdir(parents=True, exist_ok=True)
