import io
import os
import time
import zipfile

import pytest

from locallog.archive import zip_writer as zw
from locallog.archive.binary import crc32
from locallog.core.errors import ArchiveLimitError

TS = time.mktime((2025, 10, 17, 8, 30, 10, 0, 0, -1))


def _make(d, name, content: bytes, mtime=TS):
    d.mkdir(parents=True, exist_ok=True)
    p = d / name
    p.write_bytes(content)
    os.utime(p, (mtime, mtime))
    return p


def test_encode_layout_offsets_and_summary():
    """Offsets de local headers, central directory e registro final exatos."""
    items = [("a.log", b"hello\n", TS), ("bb.log", b"world!\n", TS)]
    data = zw.encode_entries(items)

    assert data[:4] == b"PK\x03\x04"
    second_offset = zw.LOCAL_HEADER_SIZE + len("a.log") + len(b"hello\n")
    assert data[second_offset : second_offset + 4] == b"PK\x03\x04"

    cd_offset = second_offset + zw.LOCAL_HEADER_SIZE + len("bb.log") + len(b"world!\n")
    cd_size = 2 * zw.CENTRAL_DIRECTORY_RECORD_SIZE + len("a.log") + len("bb.log")
    assert len(data) == cd_offset + cd_size + zw.END_RECORD_SIZE

    end = data[-zw.END_RECORD_SIZE :]
    assert end[:4] == b"PK\x05\x06"
    assert int.from_bytes(end[8:10], "little") == 2
    assert int.from_bytes(end[10:12], "little") == 2
    assert int.from_bytes(end[12:16], "little") == cd_size
    assert int.from_bytes(end[16:20], "little") == cd_offset

    entries = zw.read_archive_entries(data)
    assert [e.offset for e in entries] == [0, second_offset]


def test_local_header_fields():
    """Método stored, tamanhos iguais e CRC no local header."""
    data = zw.encode_entries([("x.log", b"abc", TS)])
    assert int.from_bytes(data[4:6], "little") == 20
    assert int.from_bytes(data[8:10], "little") == 0  # stored
    assert int.from_bytes(data[14:18], "little") == crc32(b"abc")
    assert int.from_bytes(data[18:22], "little") == 3
    assert int.from_bytes(data[22:26], "little") == 3
    assert int.from_bytes(data[26:28], "little") == len("x.log")
    assert data[30:35] == b"x.log"
    assert data[35:38] == b"abc"


def test_standard_reader_round_trip(tmp_path):
    """zipfile lê nomes, conteúdos e datas do archive produzido."""
    files = [
        _make(tmp_path, "one.log", b"first line\nsecond\n"),
        _make(tmp_path, "two.log", "ção\n".encode("utf-8")),
        _make(tmp_path, "empty.log", b""),
    ]
    data = zw.encode_files(files)

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.testzip() is None
        assert zf.namelist() == ["one.log", "two.log", "empty.log"]
        for p in files:
            info = zf.getinfo(p.name)
            assert info.compress_type == zipfile.ZIP_STORED
            assert zf.read(p.name) == p.read_bytes()
            assert info.CRC == crc32(p.read_bytes())
        assert zf.getinfo("one.log").date_time == (2025, 10, 17, 8, 30, 10)


def test_duplicate_names_get_index_suffix():
    """Colisões recebem -{índice} antes da extensão (ou no fim)."""
    items = [
        ("a.log", b"1", TS),
        ("a.log", b"2", TS),
        ("README", b"3", TS),
        ("README", b"4", TS),
    ]
    names = [e.name for e in zw.read_archive_entries(zw.encode_entries(items))]
    assert names == ["a.log", "a-1.log", "README", "README-3"]


def test_unique_name_reserves_derived_name():
    """O nome derivado também fica reservado."""
    used: set[str] = set()
    assert zw.unique_name("a.log", 0, used) == "a.log"
    assert zw.unique_name("a.log", 1, used) == "a-1.log"
    assert "a-1.log" in used


def test_same_basename_from_different_directories(tmp_path):
    """Ficheiros homônimos de diretórios distintos não colidem no archive."""
    p1 = _make(tmp_path / "d1", "x.log", b"one")
    p2 = _make(tmp_path / "d2", "x.log", b"two")
    with zipfile.ZipFile(io.BytesIO(zw.encode_files([p1, p2]))) as zf:
        assert zf.read("x.log") == b"one"
        assert zf.read("x-1.log") == b"two"


def test_encoding_is_deterministic(tmp_path):
    """Mesmos ficheiros e timestamps produzem bytes idênticos."""
    files = [_make(tmp_path, "a.log", b"aaa"), _make(tmp_path, "b.log", b"bbb")]
    assert zw.encode_files(files) == zw.encode_files(files)


def test_empty_archive():
    """Sem entradas: apenas o registro final."""
    data = zw.encode_entries([])
    assert len(data) == zw.END_RECORD_SIZE
    assert zw.read_archive_entries(data) == []
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.namelist() == []


def test_unreadable_file_aborts_and_publishes_nothing(tmp_path):
    """Ficheiro ilegível aborta a codificação; o destino não é criado."""
    ok = _make(tmp_path, "ok.log", b"x")
    dst = tmp_path / "out" / "bundle.zip"
    with pytest.raises(OSError):
        zw.write_archive(dst, [ok, tmp_path / "missing.log"])
    assert not dst.exists()


def test_write_archive_publishes(tmp_path):
    """write_archive grava o archive completo no destino."""
    ok = _make(tmp_path, "ok.log", b"payload")
    dst = zw.write_archive(tmp_path / "bundle.zip", [ok])
    assert dst.read_bytes() == zw.encode_files([ok])


def test_reader_detects_corruption():
    """CRC divergente é detectado pelo leitor."""
    data = bytearray(zw.encode_entries([("a.log", b"hello", TS)]))
    body_pos = zw.LOCAL_HEADER_SIZE + len("a.log")
    data[body_pos] ^= 0xFF
    with pytest.raises(ValueError):
        zw.read_archive_entries(bytes(data))


def test_derived_name_never_collides_with_existing_entry():
    """Sufixo derivado já ocupado por uma entrada anterior é estendido."""
    items = [
        ("a-2.log", b"1", TS),
        ("a.log", b"2", TS),
        ("a.log", b"3", TS),
    ]
    entries = zw.read_archive_entries(zw.encode_entries(items))
    names = [e.name for e in entries]
    assert names == ["a-2.log", "a.log", "a-2-2.log"]
    assert len(set(names)) == len(names)
    with zipfile.ZipFile(io.BytesIO(zw.encode_entries(items))) as zf:
        assert zf.read("a-2-2.log") == b"3"


def test_too_many_entries_raises_limit_error(monkeypatch):
    """Acima do limite de entradas a codificação falha com ArchiveLimitError."""
    monkeypatch.setattr(zw, "MAX_ENTRIES", 2)
    items = [(f"{i}.log", b"x", TS) for i in range(3)]
    with pytest.raises(ArchiveLimitError):
        zw.encode_entries(items)
    assert zw.encode_entries(items[:2])


def test_oversized_entry_raises_limit_error(monkeypatch):
    """Conteúdo acima do campo de 32 bits falha sem struct.error."""
    monkeypatch.setattr(zw, "MAX_U32", 3)
    with pytest.raises(ArchiveLimitError):
        zw.encode_entries([("big.log", b"four", TS)])


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="time.tzset indisponível")
def test_dos_timestamps_follow_process_timezone(monkeypatch):
    """Data/hora DOS seguem o fuso local: mesmo TZ, mesmos bytes."""
    items = [("a.log", b"x", 1_700_000_000.0)]
    try:
        monkeypatch.setenv("TZ", "UTC0")
        time.tzset()
        utc_bytes = zw.encode_entries(items)
        assert zw.encode_entries(items) == utc_bytes
        monkeypatch.setenv("TZ", "ABC-5")
        time.tzset()
        shifted = zw.encode_entries(items)
    finally:
        monkeypatch.undo()
        time.tzset()

    assert shifted != utc_bytes
    # 2023-11-14 22:13:20 UTC -> 2023-11-15 03:13:20 em UTC+5
    (entry,) = zw.read_archive_entries(shifted)
    assert entry.dos_date == ((2023 - 1980) << 9) | (11 << 5) | 15
    assert entry.dos_time == (3 << 11) | (13 << 5) | 10
