"""
AES-256-GCM encryption for endpoint passwords.

Each encryption draws a fresh 12-byte nonce from ``secrets``.
"""

import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from explorer_types.domain import NONCE_SIZE, EncryptedSecret
from explorer_types.errors import SecretUnavailable


def encrypt(plaintext: str, key: bytes) -> EncryptedSecret:
    """Encrypt plaintext; the returned blob is ciphertext followed by the GCM tag."""
    nonce = secrets.token_bytes(NONCE_SIZE)
    blob = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return EncryptedSecret(blob=blob, nonce=nonce)


def decrypt(record: EncryptedSecret, key: bytes) -> str:
    """
    Decrypt an encrypted secret.

    Raises:
        SecretUnavailable: If the key, nonce or blob do not match, or the
            plaintext is not valid UTF-8
    """
    if len(record.nonce) != NONCE_SIZE:
        raise SecretUnavailable(f"Nonce must be {NONCE_SIZE} bytes, got {len(record.nonce)}")
    try:
        plaintext = AESGCM(key).decrypt(record.nonce, record.blob, None)
    except InvalidTag as e:
        raise SecretUnavailable("Stored secret failed authentication; wrong or rotated key") from e
    except ValueError as e:
        raise SecretUnavailable(f"Stored secret cannot be decrypted: {e}") from e
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SecretUnavailable("Decrypted secret is not valid UTF-8") from e
