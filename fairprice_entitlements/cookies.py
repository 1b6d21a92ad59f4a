"""
FairPrice Entitlements Cookie Helpers

Minimal Cookie / Set-Cookie handling for the entitlement cookie.
"""

from __future__ import annotations

from urllib.parse import quote, unquote


def parse_cookie_header(header: str | None) -> dict[str, str]:
    """
    Parse a raw Cookie request header into a name -> value dict.

    Values are percent-decoded. Pairs without '=' are skipped; on duplicate
    names the first occurrence wins, as browsers send the most specific
    cookie first.
    """
    cookies: dict[str, str] = {}
    if not header:
        return cookies

    for part in header.split(";"):
        part = part.strip()
        if not part or "=" not in part:
            continue
        name, value = part.split("=", 1)
        name = name.strip()
        if not name or name in cookies:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name] = unquote(value)

    return cookies


def build_set_cookie(name: str, value: str, max_age: int, secure: bool = False) -> str:
    """
    Build a Set-Cookie header value for the entitlement cookie.

    Always HttpOnly, SameSite=Lax and scoped to Path=/.
    """
    parts = [
        f"{name}={quote(value, safe='')}",
        f"Max-Age={int(max_age)}",
        "Path=/",
        "HttpOnly",
        "SameSite=Lax",
    ]
    if secure:
        parts.append("Secure")
    return "; ".join(parts)
