"""Origin allow-list and shared-secret check for protected endpoints."""

import logging
import secrets

from fastapi import Request

logger = logging.getLogger(__name__)


def is_allowed_origin(referer: str, allowed_domains: list[str]) -> bool:
    """Exact host match on a referer or origin header value.

    ``https://example.com`` and ``https://example.com/page`` match the
    domain ``example.com``; ``https://example.com.evil.io`` does not.
    """
    if not referer:
        return False
    for domain in allowed_domains:
        if not domain:
            continue
        for scheme in ("http", "https"):
            base = f"{scheme}://{domain}"
            if referer == base or referer.startswith(base + "/"):
                return True
    return False


def has_valid_token(authorization: str, expected_token: str) -> bool:
    """Check an ``Authorization: Bearer <token>`` header against the secret."""
    if not expected_token or not authorization:
        return False
    return secrets.compare_digest(authorization, f"Bearer {expected_token}")


def check_access(request: Request, allowed_domains: list[str], expected_token: str) -> bool:
    """Allow a request carrying the bearer secret or an allow-listed referer/origin."""
    referer = request.headers.get("referer") or request.headers.get("origin") or ""
    authorization = request.headers.get("authorization", "")

    if has_valid_token(authorization, expected_token):
        logger.info("[Security] Allowed via Bearer token")
        return True
    if is_allowed_origin(referer, allowed_domains):
        logger.info(f"[Security] Allowed via origin: {referer}")
        return True

    logger.warning(
        f"[Security] Blocked - Referer/Origin: \"{referer}\", "
        f"Auth: {'present' if authorization else 'missing'}"
    )
    return False
