"""
Passphrase-encrypted wallet backups.

Format (version 1) — AES-256-GCM authenticated encryption of the private
key with a fresh 96-bit nonce, key derived with PBKDF2-HMAC-SHA256:

    {
      "version": 1,
      "public_key": "...",
      "label": "...",
      "encrypted_private_key": hex, "nonce": hex, "tag": hex,
      "salt": hex, "kdf": "pbkdf2-hmac-sha256", "kdf_iterations": 600000
    }

The public key and label travel in clear; they are authenticated as
associated data, so editing either makes the import fail.
"""

from __future__ import annotations

import hashlib
import os

from Crypto.Cipher import AES

from chainwallet_core.errors import InvalidBackup
from chainwallet_core.models import Wallet

BACKUP_VERSION = 1
DEFAULT_ITERATIONS = 600_000
MAX_ITERATIONS = 10_000_000
KDF_NAME = "pbkdf2-hmac-sha256"


def _check_iterations(iterations: int) -> None:
    if not 1 <= iterations <= MAX_ITERATIONS:
        raise InvalidBackup(
            f"unsupported kdf_iterations {iterations} (expected 1..{MAX_ITERATIONS})"
        )


def _derive_key(passphrase: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", passphrase.encode("utf-8"), salt, iterations)


def _associated_data(public_key: str, label: str) -> bytes:
    return f"{public_key}\x00{label}".encode("utf-8")


def export_encrypted(wallet: Wallet, passphrase: str, iterations: int = DEFAULT_ITERATIONS) -> dict:
    """Encrypt *wallet* into a JSON-compatible dict."""
    if not passphrase:
        raise InvalidBackup("passphrase must not be empty")
    _check_iterations(iterations)
    salt = os.urandom(16)
    key = _derive_key(passphrase, salt, iterations)
    nonce = os.urandom(12)
    cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
    cipher.update(_associated_data(wallet.public_key, wallet.label))
    ciphertext, tag = cipher.encrypt_and_digest(wallet.private_key.encode("utf-8"))
    return {
        "version": BACKUP_VERSION,
        "public_key": wallet.public_key,
        "label": wallet.label,
        "encrypted_private_key": ciphertext.hex(),
        "nonce": nonce.hex(),
        "tag": tag.hex(),
        "salt": salt.hex(),
        "kdf": KDF_NAME,
        "kdf_iterations": iterations,
    }


def import_encrypted(data: dict, passphrase: str) -> Wallet:
    """Decrypt a backup produced by ``export_encrypted``."""
    if not isinstance(data, dict):
        raise InvalidBackup("backup must be a JSON object")
    if data.get("version") != BACKUP_VERSION:
        raise InvalidBackup(f"unsupported backup version {data.get('version')!r}")
    if data.get("kdf", KDF_NAME) != KDF_NAME:
        raise InvalidBackup(f"unsupported kdf {data.get('kdf')!r}")
    try:
        public_key = str(data["public_key"])
        label = str(data.get("label", ""))
        salt = bytes.fromhex(data["salt"])
        nonce = bytes.fromhex(data["nonce"])
        tag = bytes.fromhex(data["tag"])
        ciphertext = bytes.fromhex(data["encrypted_private_key"])
        iterations = int(data.get("kdf_iterations", DEFAULT_ITERATIONS))
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidBackup(f"malformed backup: {exc}") from exc
    _check_iterations(iterations)

    key = _derive_key(passphrase, salt, iterations)
    cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
    cipher.update(_associated_data(public_key, label))
    try:
        private_key = cipher.decrypt_and_verify(ciphertext, tag)
    except ValueError as exc:
        raise InvalidBackup("wrong passphrase or tampered backup") from exc
    return Wallet(public_key=public_key, private_key=private_key.decode("utf-8"), label=label)
