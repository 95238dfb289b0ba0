"""Pacote archive: codificador ZIP, exportação e capacidade cifrada."""

from .zip_writer import encode_entries, encode_files, write_archive

__all__ = ["encode_entries", "encode_files", "write_archive"]
