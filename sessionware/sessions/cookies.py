"""
Session identifier and cookie helpers.

- generate_session_id: 16 random bytes, hex encoded
- session_id_from_cookie_header: manual Cookie header parsing
- build_set_cookie_line: Set-Cookie header value assembly
- http_date: RFC 1123 dates for Expires / Last-Modified
"""

import secrets
import time
from email.utils import formatdate
from typing import Optional
from urllib.parse import quote_plus, unquote_plus

SESSION_ID_BYTES = 16


def generate_session_id() -> str:
    """
    Generate a session identifier.

    Returns:
        32 lowercase hex characters from a cryptographically secure source.
    """
    return secrets.token_hex(SESSION_ID_BYTES)


def session_id_from_cookie_header(header: Optional[str], cookie_name: str) -> Optional[str]:
    """
    Extract the session id from a Cookie request header.

    Pairs are separated by ";" and split on the first "=". Names and values
    are URL-decoded before comparison.

    Args:
        header: Raw Cookie header value, or None when absent.
        cookie_name: Configured session cookie name.

    Returns:
        The decoded value of the first matching cookie, or None when the header
        is absent, empty, has no matching pair, or the matching value is empty.

    Example:
        >>> session_id_from_cookie_header("theme=dark; sid=abc123", "sid")
        'abc123'
    """
    if not header:
        return None

    for pair in header.split(";"):
        name, sep, value = pair.strip().partition("=")
        if unquote_plus(name) == cookie_name:
            return unquote_plus(value) if sep and value else None

    return None


def http_date(timestamp: float) -> str:
    """Format a Unix timestamp as an HTTP date, e.g. 'Thu, 19 Nov 1981 08:52:00 GMT'."""
    return formatdate(timestamp, usegmt=True)


def build_set_cookie_line(
    name: str,
    session_id: str,
    lifetime: int,
    domain: str = "",
    path: str = "",
    secure: bool = False,
    httponly: bool = False,
    samesite: Optional[str] = None,
    now: Optional[float] = None,
) -> str:
    """
    Build a Set-Cookie header value for the session cookie.

    Args:
        name: Cookie name.
        session_id: Session identifier to send.
        lifetime: Effective lifetime in seconds; 0 or less omits Expires and Max-Age.
        domain: Domain attribute, omitted when empty.
        path: Path attribute, omitted when empty.
        secure: Append the Secure flag.
        httponly: Append the HttpOnly flag.
        samesite: SameSite attribute value, omitted when None.
        now: Current Unix time (defaults to time.time()).

    Returns:
        The header value, attributes joined with "; ".
    """
    parts = [f"{quote_plus(name)}={quote_plus(session_id)}"]

    if lifetime > 0:
        current = time.time() if now is None else now
        parts.append(f"Expires={http_date(current + lifetime)}")
        parts.append(f"Max-Age={lifetime}")

    if domain:
        parts.append(f"Domain={domain}")

    if path:
        parts.append(f"Path={path}")

    if secure:
        parts.append("Secure")

    if httponly:
        parts.append("HttpOnly")

    if samesite:
        parts.append(f"SameSite={samesite}")

    return "; ".join(parts)
