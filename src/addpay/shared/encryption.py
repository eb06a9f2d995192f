"""
RSA signing and encryption utilities.

The gateway authenticates every request with an RSA signature over the
canonical parameter string (see canonical.py), and signs its responses
the same way with its own key. This module provides:

- SignatureCodec: RSA-SHA256 (PKCS#1 v1.5) sign/verify, base64 encoded
- RsaCipher: RSA-OAEP encryption for sensitive fields
- Key loading from PEM text or bare base64 DER
- Nonce and timestamp generation for request envelopes

Key material is supplied by the caller as opaque strings. Nothing here
generates, stores or rotates keys.
"""

import base64
import logging
import secrets
import time
from functools import lru_cache
from typing import Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from .constants import Config, ErrorCode
from .errors import AddPayError

logger = logging.getLogger(__name__)


# =============================================================================
# Key loading
# =============================================================================

def _normalize_key_text(key_text: str) -> bytes:
    # Keys copied from environment variables often carry literal "\n"
    return key_text.strip().replace("\\n", "\n").encode("utf-8")


def _der_from_base64(data: bytes) -> bytes:
    return base64.b64decode(b"".join(data.split()))


@lru_cache(maxsize=16)
def load_private_key(key_text: str) -> RSAPrivateKey:
    """
    Load an RSA private key.

    Supports:
    - PEM format (PKCS#1 or PKCS#8), begins with "-----BEGIN"
    - Raw base64-encoded DER (PKCS#8 or PKCS#1)

    Raises:
        ValueError: If the key cannot be parsed or is not an RSA key
    """
    data = _normalize_key_text(key_text)
    try:
        if b"-----BEGIN" in data:
            key = serialization.load_pem_private_key(data, password=None)
        else:
            key = serialization.load_der_private_key(_der_from_base64(data), password=None)
    except (TypeError, UnsupportedAlgorithm) as e:
        raise ValueError(f"Unsupported private key: {e}")

    if not isinstance(key, RSAPrivateKey):
        raise ValueError(f"Not an RSA private key: {type(key).__name__}")
    return key


@lru_cache(maxsize=16)
def load_public_key(key_text: str) -> RSAPublicKey:
    """
    Load an RSA public key (SubjectPublicKeyInfo or PKCS#1, PEM or base64 DER).

    Raises:
        ValueError: If the key cannot be parsed or is not an RSA key
    """
    data = _normalize_key_text(key_text)
    try:
        if b"-----BEGIN" in data:
            key = serialization.load_pem_public_key(data)
        else:
            key = serialization.load_der_public_key(_der_from_base64(data))
    except (TypeError, UnsupportedAlgorithm) as e:
        raise ValueError(f"Unsupported public key: {e}")

    if not isinstance(key, RSAPublicKey):
        raise ValueError(f"Not an RSA public key: {type(key).__name__}")
    return key


# =============================================================================
# Signatures
# =============================================================================

class SignatureCodec:
    """
    RSA-SHA256 signatures over canonical strings.

    Signatures use PKCS#1 v1.5 padding over the UTF-8 bytes of the
    canonical string and are exchanged as base64 text.

    Usage:
        signature = SignatureCodec.sign(canonical, private_key_pem)
        SignatureCodec.verify(canonical, signature, public_key_pem)  # True
    """

    @staticmethod
    def sign(canonical: str, private_key: str) -> str:
        """
        Sign a canonical string.

        Args:
            canonical: The canonical parameter string
            private_key: Merchant private key (PEM or base64 DER)

        Returns:
            Base64-encoded signature

        Raises:
            AddPayError: SIGNING_ERROR if the private key is unusable.
                This is a misconfiguration and is never retried.
        """
        try:
            key = load_private_key(private_key)
        except ValueError as e:
            raise AddPayError(
                ErrorCode.SIGNING_ERROR,
                f"Invalid private key: {e}",
            ) from e

        signature = key.sign(
            canonical.encode("utf-8"),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return base64.b64encode(signature).decode("ascii")

    @staticmethod
    def verify(canonical: str, signature: str, public_key: str) -> bool:
        """
        Verify a signature over a canonical string.

        Never raises: malformed signature text, unparsable or non-RSA
        keys and mismatches all return False.
        """
        try:
            key = load_public_key(public_key)
            raw_signature = base64.b64decode(signature)
            key.verify(
                raw_signature,
                canonical.encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
            return True
        except (InvalidSignature, ValueError, TypeError, AttributeError, UnsupportedAlgorithm) as e:
            logger.debug("Signature verification failed: %s", type(e).__name__)
            return False


# =============================================================================
# Encryption
# =============================================================================

class RsaCipher:
    """
    RSA-OAEP encryption for individual sensitive values.

    Uses OAEP with SHA-1 for both MGF1 and the label hash, which is what
    the gateway expects. Plaintext size is limited by the key size
    (214 bytes for a 2048-bit key).
    """

    @staticmethod
    def _padding() -> padding.OAEP:
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA1()),
            algorithm=hashes.SHA1(),
            label=None,
        )

    @classmethod
    def encrypt(cls, plaintext: str, public_key: str) -> str:
        """
        Encrypt a value with the recipient's public key.

        Returns:
            Base64-encoded ciphertext
        """
        key = load_public_key(public_key)
        ciphertext = key.encrypt(plaintext.encode("utf-8"), cls._padding())
        return base64.b64encode(ciphertext).decode("ascii")

    @classmethod
    def decrypt(cls, ciphertext: str, private_key: str) -> str:
        """
        Decrypt a base64 ciphertext with our private key.

        Raises:
            ValueError: If decryption fails (wrong key or tampered data)
        """
        key = load_private_key(private_key)
        try:
            plaintext = key.decrypt(base64.b64decode(ciphertext), cls._padding())
        except ValueError as e:
            raise ValueError(f"Decryption failed: {e}")
        return plaintext.decode("utf-8")


# =============================================================================
# Envelope tokens
# =============================================================================

def generate_nonce() -> str:
    """A fresh random nonce: 16 bytes as 32 hex characters."""
    return secrets.token_hex(Config.NONCE_BYTES)


def generate_timestamp() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


def key_fingerprint(key_text: Union[str, bytes]) -> str:
    """Short, non-reversible label for a key, safe to log."""
    if isinstance(key_text, str):
        key_text = key_text.encode("utf-8")
    digest = hashes.Hash(hashes.SHA256())
    digest.update(key_text)
    return digest.finalize().hex()[:12]
