"""Codificador de archive ZIP sem compressão (método "stored").

Layout produzido, na ordem de entrada dos ficheiros:

- por entrada: local header (30 bytes) + nome + conteúdo;
- por entrada: registro do central directory (46 bytes) + nome;
- um único registro final (end of central directory, 22 bytes).

Todos os inteiros são little-endian de largura fixa. A saída depende dos
nomes, conteúdos e timestamps dos ficheiros e do fuso horário do processo
(``TZ``): data e hora DOS são gravadas no calendário local, como fazem as
ferramentas ZIP comuns. Com o mesmo fuso a saída é reproduzível byte a byte.

Sem extensões ZIP64: seleções com mais de 65535 entradas ou com ficheiros,
offsets ou central directory acima de 4 GiB levantam ArchiveLimitError antes
de qualquer escrita.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, Sequence

from ..core.errors import ArchiveLimitError
from ..system.log_helpers import file_timestamp, publish_bytes
from .binary import FieldWriter, crc32, dos_date_time

logger = logging.getLogger(__name__)

LOCAL_HEADER_SIGNATURE = 0x04034B50
CENTRAL_DIRECTORY_SIGNATURE = 0x02014B50
END_OF_CENTRAL_DIRECTORY_SIGNATURE = 0x06054B50

LOCAL_HEADER_SIZE = 30
CENTRAL_DIRECTORY_RECORD_SIZE = 46
END_RECORD_SIZE = 22

VERSION = 20
METHOD_STORED = 0

MAX_ENTRIES = 0xFFFF
MAX_U16 = 0xFFFF
MAX_U32 = 0xFFFFFFFF


@dataclass(frozen=True)
class ArchiveEntry:
    """Entrada já posicionada no archive."""

    name: str
    data: bytes
    crc32: int
    dos_date: int
    dos_time: int
    offset: int

    @property
    def size(self) -> int:
        return len(self.data)


# ========================
# 1. Nomes únicos
# ========================


def unique_name(base_name: str, index: int, used: set[str]) -> str:
    """Resolve colisões de nome acrescentando ``-{index}`` antes da extensão.

    O nome derivado também é reservado em `used`. Se o derivado já estiver em
    uso (ex.: ``a-2.log`` veio antes de dois ``a.log``), o sufixo é repetido
    até ficar livre.
    """
    if base_name not in used:
        used.add(base_name)
        return base_name
    pure = PurePosixPath(base_name)
    suffix = pure.suffix
    stem = base_name[: -len(suffix)] if suffix else base_name
    candidate = f"{stem}-{index}{suffix}"
    while candidate in used:
        stem = f"{stem}-{index}"
        candidate = f"{stem}-{index}{suffix}"
    used.add(candidate)
    return candidate


# ========================
# 2. Codificação
# ========================


def _write_local_header(out: FieldWriter, entry: ArchiveEntry, name_bytes: bytes) -> None:
    out.u32(LOCAL_HEADER_SIGNATURE)
    out.u16(VERSION)  # version needed to extract
    out.u16(0)  # flags
    out.u16(METHOD_STORED)
    out.u16(entry.dos_time)
    out.u16(entry.dos_date)
    out.u32(entry.crc32)
    out.u32(entry.size)  # compressed
    out.u32(entry.size)  # uncompressed
    out.u16(len(name_bytes))
    out.u16(0)  # extra length


def _write_central_record(out: FieldWriter, entry: ArchiveEntry, name_bytes: bytes) -> None:
    out.u32(CENTRAL_DIRECTORY_SIGNATURE)
    out.u16(VERSION)  # version made by
    out.u16(VERSION)  # version needed to extract
    out.u16(0)  # flags
    out.u16(METHOD_STORED)
    out.u16(entry.dos_time)
    out.u16(entry.dos_date)
    out.u32(entry.crc32)
    out.u32(entry.size)
    out.u32(entry.size)
    out.u16(len(name_bytes))
    out.u16(0)  # extra length
    out.u16(0)  # comment length
    out.u16(0)  # disk number start
    out.u16(0)  # internal attributes
    out.u32(0)  # external attributes
    out.u32(entry.offset)
    out.raw(name_bytes)


def _write_end_record(out: FieldWriter, count: int, cd_size: int, cd_offset: int) -> None:
    out.u32(END_OF_CENTRAL_DIRECTORY_SIGNATURE)
    out.u16(0)  # this disk
    out.u16(0)  # disk where central directory starts
    out.u16(count)  # entries on this disk
    out.u16(count)  # total entries
    out.u32(cd_size)
    out.u32(cd_offset)
    out.u16(0)  # comment length


def encode_entries(items: Iterable[tuple[str, bytes, float]]) -> bytes:
    """Codifica `(nome, conteúdo, timestamp)` num archive completo.

    Função pura: sem I/O e sem relógio. Nomes repetidos recebem o sufixo
    ``-{índice}``. Levanta ArchiveLimitError quando a seleção não cabe no
    formato sem ZIP64.
    """
    out = FieldWriter()
    entries: list[ArchiveEntry] = []
    used: set[str] = set()

    for index, (base_name, data, ts) in enumerate(items):
        if index >= MAX_ENTRIES:
            raise ArchiveLimitError(f"mais de {MAX_ENTRIES} entradas no archive")
        if len(data) > MAX_U32:
            raise ArchiveLimitError(f"{base_name}: {len(data)} bytes excede 4 GiB")
        if out.offset > MAX_U32:
            raise ArchiveLimitError(f"{base_name}: offset {out.offset} excede 4 GiB")
        name = unique_name(base_name, index, used)
        dos_date, dos_time = dos_date_time(ts)
        entry = ArchiveEntry(
            name=name,
            data=data,
            crc32=crc32(data),
            dos_date=dos_date,
            dos_time=dos_time,
            offset=out.offset,
        )
        name_bytes = name.encode("utf-8")
        if len(name_bytes) > MAX_U16:
            raise ArchiveLimitError(f"nome com {len(name_bytes)} bytes excede {MAX_U16}")
        _write_local_header(out, entry, name_bytes)
        out.raw(name_bytes)
        out.raw(data)
        entries.append(entry)

    cd_offset = out.offset
    for entry in entries:
        _write_central_record(out, entry, entry.name.encode("utf-8"))
    cd_size = out.offset - cd_offset
    if cd_offset > MAX_U32 or cd_size > MAX_U32:
        raise ArchiveLimitError("central directory além de 4 GiB")

    _write_end_record(out, len(entries), cd_size, cd_offset)
    return out.getvalue()


def encode_files(files: Sequence[Path]) -> bytes:
    """Lê `files` na ordem dada e codifica o archive.

    Qualquer ficheiro ilegível aborta a codificação com OSError. Ficheiros sem
    timestamp descobrível usam o instante atual.
    """
    items = []
    for p in files:
        p = Path(p)
        data = p.read_bytes()
        ts = file_timestamp(p)
        if ts is None:
            ts = time.time()
        items.append((p.name, data, ts))
    return encode_entries(items)


def write_archive(destination: Path, files: Sequence[Path]) -> Path:
    """Codifica `files` e publica o resultado em `destination` atomicamente."""
    data = encode_files(files)
    publish_bytes(Path(destination), data)
    logger.debug("write_archive: %d entrada(s), %d bytes em %s", len(files), len(data), destination)
    return Path(destination)


# ========================
# 3. Leitura (verificação offline)
# ========================


def _u16(data: bytes, pos: int) -> int:
    return int.from_bytes(data[pos : pos + 2], "little")


def _u32(data: bytes, pos: int) -> int:
    return int.from_bytes(data[pos : pos + 4], "little")


def read_archive_entries(data: bytes) -> list[ArchiveEntry]:
    """Decodifica um archive produzido por `encode_entries`.

    Percorre o central directory a partir do registro final e valida
    assinaturas, offsets e CRC de cada entrada. Levanta ValueError quando o
    archive estiver inconsistente.
    """
    end_pos = len(data) - END_RECORD_SIZE
    if end_pos < 0 or _u32(data, end_pos) != END_OF_CENTRAL_DIRECTORY_SIGNATURE:
        raise ValueError("registro final ausente")
    count = _u16(data, end_pos + 10)
    cd_size = _u32(data, end_pos + 12)
    cd_offset = _u32(data, end_pos + 16)
    if cd_offset + cd_size != end_pos:
        raise ValueError("tamanho/offset do central directory inconsistentes")

    entries = []
    pos = cd_offset
    for _ in range(count):
        if _u32(data, pos) != CENTRAL_DIRECTORY_SIGNATURE:
            raise ValueError(f"assinatura de central directory inválida em {pos}")
        dos_time = _u16(data, pos + 12)
        dos_date = _u16(data, pos + 14)
        crc = _u32(data, pos + 16)
        size = _u32(data, pos + 20)
        name_len = _u16(data, pos + 28)
        offset = _u32(data, pos + 42)
        name = data[pos + CENTRAL_DIRECTORY_RECORD_SIZE : pos + CENTRAL_DIRECTORY_RECORD_SIZE + name_len].decode("utf-8")
        pos += CENTRAL_DIRECTORY_RECORD_SIZE + name_len

        if _u32(data, offset) != LOCAL_HEADER_SIGNATURE:
            raise ValueError(f"local header ausente no offset {offset} ({name})")
        local_name_len = _u16(data, offset + 26)
        extra_len = _u16(data, offset + 28)
        start = offset + LOCAL_HEADER_SIZE + local_name_len + extra_len
        body = data[start : start + size]
        if crc32(body) != crc:
            raise ValueError(f"CRC inválido para {name}")
        entries.append(ArchiveEntry(name, body, crc, dos_date, dos_time, offset))
    if pos != cd_offset + cd_size:
        raise ValueError("central directory com tamanho inesperado")
    return entries
