"""
Field encryption for identity material.

The gateway expects aadhaar numbers, OTPs and replacement mobile numbers to be
RSA-OAEP encrypted with the ABDM public key before they leave the client. Which
fields get encrypted is a lookup table, evaluated per request body.
"""
from __future__ import annotations

import base64
from typing import Any, Dict, Mapping, Optional, Protocol

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from healthid.core.errors import EncryptionError
from healthid.core.steps import AbhaStep, Step
from healthid.observability.logging import log

# field name -> encrypt?  (applies to every step of every flow)
SENSITIVE_FIELDS: Dict[str, bool] = {
    "aadhaar": True,
    "otp": True,
}

# extra per-step entries layered over SENSITIVE_FIELDS
STEP_SENSITIVE_FIELDS: Dict[Step, Dict[str, bool]] = {
    AbhaStep.UPDATE_MOBILE: {"updateValue": True},
}


class Encryptor(Protocol):
    def encrypt(self, plaintext: str) -> str: ...


def _load_public_key(pem: str) -> rsa.RSAPublicKey:
    text = pem.replace("\\n", "\n").strip()
    if not text.startswith("-----BEGIN"):
        text = "-----BEGIN PUBLIC KEY-----\n" + text + "\n-----END PUBLIC KEY-----"
    data = text.encode("utf-8")
    if "CERTIFICATE" in text:
        key = x509.load_pem_x509_certificate(data).public_key()
    else:
        key = serialization.load_pem_public_key(data)
    if not isinstance(key, rsa.RSAPublicKey):
        raise EncryptionError("ABHA encryption key is not an RSA public key")
    return key


class RsaOaepEncryptor:
    """RSA/ECB/OAEPWithSHA-1AndMGF1Padding, base64 output."""

    def __init__(self, public_pem: str):
        try:
            self._key = _load_public_key(public_pem)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise EncryptionError(f"Failed to load ABHA public key: {e}")

    def encrypt(self, plaintext: str) -> str:
        try:
            ct = self._key.encrypt(
                plaintext.encode("utf-8"),
                padding.OAEP(
                    mgf=padding.MGF1(algorithm=hashes.SHA1()),
                    algorithm=hashes.SHA1(),
                    label=None,
                ),
            )
        except ValueError as e:
            raise EncryptionError(f"Failed to encrypt data for ABHA: {e}")
        return base64.b64encode(ct).decode("ascii")


class UnconfiguredEncryptor:
    """Stands in when no usable key is configured; every encrypt call fails the step."""

    def __init__(self, reason: str = "ABHA certificate not configured"):
        self.reason = reason

    def encrypt(self, plaintext: str) -> str:
        raise EncryptionError(self.reason)


def build_encryptor(settings) -> Encryptor:
    pem = getattr(settings, "ABHA_CERTIFICATE_PEM", "") or ""
    if not pem.strip():
        return UnconfiguredEncryptor()
    try:
        return RsaOaepEncryptor(pem)
    except EncryptionError as e:
        log(event="encryptor_key_invalid", error=e.message[:200])
        return UnconfiguredEncryptor(e.message)


def sensitive_fields_for(step: Optional[Step]) -> Dict[str, bool]:
    table = dict(SENSITIVE_FIELDS)
    if step is not None:
        table.update(STEP_SENSITIVE_FIELDS.get(step, {}))
    return table


def encrypt_sensitive_fields(body: Mapping[str, Any], step: Optional[Step], encryptor: Encryptor) -> Dict[str, Any]:
    """Return a copy of body with every flagged field replaced by its ciphertext."""
    out = dict(body)
    for field, should_encrypt in sensitive_fields_for(step).items():
        if should_encrypt and field in out and out[field] is not None:
            out[field] = encryptor.encrypt(str(out[field]))
    return out
