"""Composição da exportação: nomes de saída e publicação dos archives."""

import logging
from pathlib import Path
from typing import Sequence

from ..system.log_helpers import publish_bytes
from ..system.selection import DateInterval
from .encrypted import EncryptedArchiver
from .zip_writer import write_archive

logger = logging.getLogger(__name__)

PLAIN_SUFFIX = ".zip"
ENCRYPTED_SUFFIX = ".aea"


def export_file_name(prefix: str, interval: DateInterval, suffix: str) -> str:
    """``{prefix}-{epochInício}-{epochFim}{suffix}`` com epochs em segundos."""
    return f"{prefix}-{interval.start_epoch}-{interval.end_epoch}{suffix}"


def export_plain(files: Sequence[Path], interval: DateInterval, prefix: str, export_dir: Path) -> Path:
    """Grava o archive ZIP de `files` em `export_dir` e retorna o caminho.

    Um ficheiro preexistente com o mesmo nome é substituído.
    """
    destination = Path(export_dir) / export_file_name(prefix, interval, PLAIN_SUFFIX)
    write_archive(destination, files)
    logger.info("exportação gravada em %s (%d ficheiro(s))", destination, len(files))
    return destination


def export_encrypted(
    files: Sequence[Path],
    interval: DateInterval,
    prefix: str,
    export_dir: Path,
    password: str,
    archiver: EncryptedArchiver,
) -> Path:
    """Delega a cifragem para `archiver` e publica o resultado em `export_dir`."""
    data = archiver.encrypt_archive(files, password)
    destination = Path(export_dir) / export_file_name(prefix, interval, ENCRYPTED_SUFFIX)
    publish_bytes(destination, data)
    logger.info("exportação cifrada gravada em %s (%d ficheiro(s))", destination, len(files))
    return destination
