"""Token generation, hashing and client fingerprinting for magic links.

All hash helpers are pure and deterministic. Randomness comes from
``secrets`` only.
"""

import base64
import hashlib
import hmac
import re
import secrets
import string

TOKEN_BYTES = 32
SLUG_LENGTH = 10
SLUG_ALPHABET = string.ascii_letters + string.digits
USER_AGENT_HASH_LENGTH = 16

_EMAIL_LOCAL_SEPARATORS = re.compile(r"[._-]+")


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_token() -> str:
    """Return a fresh 256-bit secret, base64url encoded without padding."""
    return _b64url(secrets.token_bytes(TOKEN_BYTES))


def hash_token(token: str, pepper: str) -> str:
    """HMAC-SHA256 of ``token`` keyed with ``pepper``, base64url encoded."""
    digest = hmac.new(pepper.encode("utf-8"), token.encode("utf-8"), hashlib.sha256).digest()
    return _b64url(digest)


def generate_url_slug(length: int = SLUG_LENGTH) -> str:
    """Return a public, URL-safe invite identifier."""
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def hash_user_agent(user_agent: str) -> str:
    """First 16 hex characters of SHA-256(user_agent)."""
    return hashlib.sha256(user_agent.encode("utf-8")).hexdigest()[:USER_AGENT_HASH_LENGTH]


def ip_prefix(ip: str) -> str:
    """Coarse network prefix of a client address.

    IPv4 keeps the /24 (``a.b.c.0``). Anything else keeps the first three
    colon-separated groups followed by ``::``. A comma-separated forwarded
    list is reduced to its first entry.
    """
    ip = ip.split(",")[0].strip()
    parts = ip.split(".")
    if len(parts) == 4:
        return f"{parts[0]}.{parts[1]}.{parts[2]}.0"
    groups = ip.split(":")
    return ":".join(groups[:3]) + "::"


def timing_safe_equal(a: str, b: str) -> bool:
    """Constant-time string comparison."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def display_name_from_email(email: str) -> str:
    """Derive a readable name from an email's local part.

    ``jane.doe@x.com`` -> ``Jane Doe``. Returns the raw input when there is no
    local part.
    """
    local = email.split("@", 1)[0]
    pieces = [piece for piece in _EMAIL_LOCAL_SEPARATORS.split(local) if piece]
    if not pieces:
        return email
    return " ".join(piece[:1].upper() + piece[1:].lower() for piece in pieces)
