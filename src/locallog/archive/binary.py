"""Primitivas binárias do formato de archive.

Escritor de campos little-endian de largura fixa, CRC-32 por tabela e
empacotamento de data/hora no formato DOS.
"""

import struct
import time

# ========================
# 1. Campos de largura fixa
# ========================

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


class FieldWriter:
    """Acumula campos little-endian num buffer e expõe o offset corrente.

    Cada escrita valida a faixa do inteiro; ``struct.error`` indica um valor
    que não cabe no campo.
    """

    def __init__(self):
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    @property
    def offset(self) -> int:
        return len(self._buf)

    def u16(self, value: int) -> "FieldWriter":
        self._buf += _U16.pack(value)
        return self

    def u32(self, value: int) -> "FieldWriter":
        self._buf += _U32.pack(value)
        return self

    def raw(self, data: bytes) -> "FieldWriter":
        self._buf += data
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)


# ========================
# 2. CRC-32
# ========================

CRC32_POLYNOMIAL = 0xEDB88320


def _build_crc_table() -> tuple[int, ...]:
    table = []
    for index in range(256):
        value = index
        for _ in range(8):
            if value & 1:
                value = (value >> 1) ^ CRC32_POLYNOMIAL
            else:
                value >>= 1
        table.append(value)
    return tuple(table)


_CRC_TABLE = _build_crc_table()


def crc32(data: bytes, crc: int = 0) -> int:
    """CRC-32 refletido (0xEDB88320), XOR inicial/final 0xFFFFFFFF.

    `crc` permite encadear chamadas sobre blocos: ``crc32(b, crc32(a))`` é
    igual a ``crc32(a + b)``.
    """
    value = crc ^ 0xFFFFFFFF
    table = _CRC_TABLE
    for byte in data:
        value = (value >> 8) ^ table[(value ^ byte) & 0xFF]
    return value ^ 0xFFFFFFFF


# ========================
# 3. Data/hora DOS
# ========================

DOS_MIN_YEAR = 1980
DOS_MAX_YEAR = 2107


def dos_date_time(ts: float) -> tuple[int, int]:
    """Converte epoch em (dos_date, dos_time) no horário local.

    Ano limitado a [1980, 2107]; resolução de 2 segundos.
    """
    tm = time.localtime(ts)
    year = max(DOS_MIN_YEAR, min(DOS_MAX_YEAR, tm.tm_year))
    month = max(1, min(12, tm.tm_mon))
    day = max(1, min(31, tm.tm_mday))
    hour = max(0, min(23, tm.tm_hour))
    minute = max(0, min(59, tm.tm_min))
    second = max(0, min(59, tm.tm_sec))

    dos_date = ((year - DOS_MIN_YEAR) << 9) | (month << 5) | day
    dos_time = (hour << 11) | (minute << 5) | (second // 2)
    return dos_date, dos_time
