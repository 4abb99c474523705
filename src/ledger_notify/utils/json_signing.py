"""JSON document signing on secp256k1.

A signed document is the original JSON object plus a ``signature`` string::

    <algorithm>:<compressed-pubkey-hex>:<DER-signature-hex>

The signature covers the SHA-256 digest of the canonical JSON of the document
without its ``signature`` field.  Nonces are derived per RFC 6979, so signing
the same body with the same key always yields the same signature.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from ecdsa import SECP256k1, BadSignatureError, SigningKey, VerifyingKey
from ecdsa.der import UnexpectedDER
from ecdsa.keys import MalformedPointError
from ecdsa.util import sigdecode_der, sigencode_der

from ledger_notify.errors.delivery_errors import SigningError

# Crypto-condition style signatures
ALGORITHM_CC = "CC"

_CURVE = SECP256k1


def load_signing_key(secret_hex: str = "") -> SigningKey:
    """Load a private key from hex, or generate a fresh one when *secret_hex* is empty.

    Raises:
        SigningError: If the hex string is not a valid secp256k1 private key.
    """
    if not secret_hex:
        return SigningKey.generate(curve=_CURVE)
    try:
        return SigningKey.from_string(bytes.fromhex(secret_hex), curve=_CURVE)
    except (ValueError, MalformedPointError) as e:
        msg = "notification signing secret is not a valid secp256k1 private key"
        raise SigningError(msg) from e


def public_key_hex(key: SigningKey) -> str:
    """Compressed public key of *key* as hex."""
    return key.get_verifying_key().to_string("compressed").hex()


def canonical_json(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys and no insignificant whitespace."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode()


def _unsigned(body: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in body.items() if k != "signature"}


def digest(body: dict[str, Any]) -> bytes:
    """SHA-256 of the canonical JSON of *body*, ignoring any ``signature`` field."""
    return hashlib.sha256(canonical_json(_unsigned(body))).digest()


def sign(body: dict[str, Any], algorithm: str, key: SigningKey) -> dict[str, Any]:
    """Return a copy of *body* carrying a ``signature`` made with *key*."""
    unsigned = _unsigned(body)
    signature = key.sign_digest_deterministic(
        digest(unsigned),
        hashfunc=hashlib.sha256,
        sigencode=sigencode_der,
    )
    return {**unsigned, "signature": f"{algorithm}:{public_key_hex(key)}:{signature.hex()}"}


def verify(signed: dict[str, Any], *, public_key: str | None = None) -> bool:
    """Check the ``signature`` of a signed document.

    Args:
        signed: Document produced by :func:`sign`.
        public_key: If given, the signature must also be made by this key (hex).
    """
    value = signed.get("signature")
    if not isinstance(value, str):
        return False
    parts = value.split(":")
    if len(parts) != 3:
        return False
    _, pub_hex, sig_hex = parts
    if public_key is not None and pub_hex != public_key:
        return False
    try:
        vk = VerifyingKey.from_string(bytes.fromhex(pub_hex), curve=_CURVE)
        return vk.verify_digest(bytes.fromhex(sig_hex), digest(signed), sigdecode=sigdecode_der)
    except (BadSignatureError, UnexpectedDER, MalformedPointError, ValueError):
        return False
