"""HMAC-SHA256 webhook signatures.

Receivers recompute the HMAC over the raw request body with their copy of
the shared secret and compare it to the X-Webhook-Signature header.
"""

from __future__ import annotations

import hashlib
import hmac

from pydantic import SecretBytes

from presto_webhooks.exceptions import SigningError

SIGNATURE_ALGORITHM = "sha256"


def _key_bytes(secret: SecretBytes | bytes | str) -> bytes:
    if isinstance(secret, SecretBytes):
        secret = secret.get_secret_value()
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    if not isinstance(secret, bytes | bytearray):
        raise SigningError(f"Secret must be bytes or str, not {type(secret).__name__}")
    if not secret:
        raise SigningError("Secret must not be empty")
    return bytes(secret)


def sign(secret: SecretBytes | bytes | str, payload: bytes) -> str:
    """Compute the HMAC-SHA256 of a payload.

    Args:
        secret: Shared secret (raw bytes, text, or a SecretBytes wrapper).
        payload: Exact bytes that will be transmitted.

    Returns:
        Lowercase hex digest, 64 characters, no prefix.

    Raises:
        SigningError: If the secret is empty or cannot be used as a key.
    """
    key = _key_bytes(secret)
    try:
        return hmac.new(key=key, msg=payload, digestmod=hashlib.sha256).hexdigest()
    except (TypeError, ValueError) as e:
        raise SigningError(f"Could not install HMAC key: {e}") from e


def signature_header(signature: str) -> str:
    """Format a hex digest for the signature header ("sha256=<hex>")."""
    return f"{SIGNATURE_ALGORITHM}={signature}"


def verify_signature(
    secret: SecretBytes | bytes | str,
    payload: bytes,
    header_value: str,
) -> bool:
    """Verify a signature header against a payload.

    Args:
        secret: Shared secret.
        payload: Raw request body as received.
        header_value: Value of the signature header ("sha256=<hex>").

    Returns:
        True if the signature is valid, False otherwise.
    """
    expected = signature_header(sign(secret, payload))
    return hmac.compare_digest(expected.encode("ascii"), header_value.encode("utf-8"))


__all__ = ["SIGNATURE_ALGORITHM", "sign", "signature_header", "verify_signature"]
