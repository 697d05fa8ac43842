"""
Secret handling for the quality API key.
The key travels as a pydantic SecretStr and is sealed as a compact JWE at rest.
"""

import hashlib

from jose import jwe
from jose.constants import ALGORITHMS
from jose.exceptions import JWEError
from pydantic import SecretStr

from app.services.base import BaseService
from app.settings import settings

REDACTED = "********"


class SecretService(BaseService):
    """Seals, reveals and redacts the API key."""

    def __init__(self, key_material: str | None = None):
        super().__init__("secret")
        key_material = key_material or settings.get_encryption_key()
        if not key_material:
            raise ValueError("SETTINGS_ENCRYPTION_KEY not configured")
        # A256GCM with direct encryption needs exactly 32 bytes
        self._key = hashlib.sha256(key_material.encode("utf-8")).digest()

    def seal(self, secret: SecretStr | None) -> str | None:
        """Encrypt a secret for storage. Empty secrets are stored as None."""
        if secret is None or not secret.get_secret_value():
            return None

        with self.trace_operation("seal"):
            token = jwe.encrypt(
                secret.get_secret_value().encode("utf-8"),
                self._key,
                algorithm=ALGORITHMS.DIR,
                encryption=ALGORITHMS.A256GCM,
            )
            return token.decode("ascii") if isinstance(token, bytes) else token

    def reveal(self, sealed: str | None) -> SecretStr | None:
        """Decrypt a stored secret back into an opaque handle."""
        if not sealed:
            return None

        with self.trace_operation("reveal") as span:
            try:
                plaintext = jwe.decrypt(sealed, self._key)
            except JWEError as e:
                span.record_exception(e)
                raise ValueError(
                    "Stored API key cannot be decrypted; was SETTINGS_ENCRYPTION_KEY changed?"
                ) from e
            return SecretStr(plaintext.decode("utf-8"))

    @staticmethod
    def redact(secret: SecretStr | None) -> str:
        """Display form of a secret."""
        if secret is None or not secret.get_secret_value():
            return ""
        return REDACTED
