import hashlib
import hmac
from typing import Optional

SIGNATURE_PREFIX = "sha256="


class GithubMiddleware:
    """Checks that webhook deliveries were signed with the shared secret."""

    def verify_webhook_signature(self, payload: bytes, signature: Optional[str], secret: str) -> bool:
        """Compare ``X-Hub-Signature-256`` against the HMAC-SHA256 of the raw body."""
        if not signature or not signature.startswith(SIGNATURE_PREFIX):
            return False

        expected = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature[len(SIGNATURE_PREFIX):])

    def sign(self, payload: bytes, secret: str) -> str:
        """Signature header value GitHub would send for ``payload``."""
        return SIGNATURE_PREFIX + hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
