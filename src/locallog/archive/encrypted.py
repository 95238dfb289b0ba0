"""Capacidade de archive cifrado por senha.

O logger depende apenas da interface `EncryptedArchiver`. Há duas
implementações: `UnavailableEncryptedArchiver`, que sempre falha com
`UnsupportedFeatureError`, e `PasswordEncryptedArchiver`, que cifra o archive
ZIP com AES-256-GCM e chave derivada por scrypt.

Formato do ficheiro produzido::

    b"LLAE" | versão (1 byte) | salt (16 bytes) | nonce (12 bytes) | ciphertext+tag

O cabeçalho inteiro entra como dado associado do AES-GCM.
"""

import logging
import os
from pathlib import Path
from typing import Protocol, Sequence

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..core.errors import InvalidPasswordError, UnsupportedFeatureError
from .zip_writer import encode_files

logger = logging.getLogger(__name__)

MAGIC = b"LLAE"
FORMAT_VERSION = 1
SALT_SIZE = 16
NONCE_SIZE = 12
HEADER_SIZE = len(MAGIC) + 1 + SALT_SIZE + NONCE_SIZE

SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


class EncryptedArchiver(Protocol):
    """Interface da capacidade de exportação cifrada."""

    available: bool

    def encrypt_archive(self, files: Sequence[Path], password: str) -> bytes:
        """Retorna os bytes do archive cifrado ou levanta UnsupportedFeatureError."""
        ...


class UnavailableEncryptedArchiver:
    """Implementação para plataformas sem a capacidade; falha fechado."""

    available = False

    def encrypt_archive(self, files: Sequence[Path], password: str) -> bytes:
        raise UnsupportedFeatureError("exportação cifrada indisponível nesta plataforma")


def _derive_key(password: str, salt: bytes) -> bytes:
    kdf = Scrypt(salt=salt, length=32, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(password.encode("utf-8"))


class PasswordEncryptedArchiver:
    """Cifra o archive ZIP dos ficheiros com uma senha."""

    available = True

    def encrypt_archive(self, files: Sequence[Path], password: str) -> bytes:
        if not password:
            raise InvalidPasswordError("senha vazia para exportação cifrada")
        plain = encode_files(files)
        return encrypt_bytes(plain, password)


def encrypt_bytes(plain: bytes, password: str) -> bytes:
    """Cifra `plain` com chave derivada de `password` (salt e nonce aleatórios)."""
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    header = MAGIC + bytes([FORMAT_VERSION]) + salt + nonce
    key = _derive_key(password, salt)
    return header + AESGCM(key).encrypt(nonce, plain, header)


def decrypt_archive(data: bytes, password: str) -> bytes:
    """Reverte `encrypt_bytes`, devolvendo os bytes do archive ZIP.

    Levanta InvalidPasswordError quando a senha não confere e ValueError
    quando o cabeçalho não for reconhecido.
    """
    if len(data) < HEADER_SIZE or data[: len(MAGIC)] != MAGIC:
        raise ValueError("cabeçalho de archive cifrado não reconhecido")
    version = data[len(MAGIC)]
    if version != FORMAT_VERSION:
        raise ValueError(f"versão de archive cifrado não suportada: {version}")
    header = data[:HEADER_SIZE]
    salt = header[len(MAGIC) + 1 : len(MAGIC) + 1 + SALT_SIZE]
    nonce = header[-NONCE_SIZE:]
    key = _derive_key(password, salt)
    try:
        return AESGCM(key).decrypt(nonce, data[HEADER_SIZE:], header)
    except InvalidTag as exc:
        raise InvalidPasswordError("senha incorreta ou archive corrompido") from exc


def default_encrypted_archiver() -> EncryptedArchiver:
    """Seleciona a implementação conforme ``LOCALLOG_ENCRYPTED_EXPORT``.

    Valores ``0/false/no/off`` desativam a capacidade.
    """
    flag = os.getenv("LOCALLOG_ENCRYPTED_EXPORT", "1").strip().lower()
    if flag in ("0", "false", "no", "off"):
        logger.debug("exportação cifrada desativada via LOCALLOG_ENCRYPTED_EXPORT")
        return UnavailableEncryptedArchiver()
    return PasswordEncryptedArchiver()
