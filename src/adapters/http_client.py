"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts y headers para los chequeos de conectividad.
- Facilita testeo: se puede sustituir por un stub/mocked client.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings

USER_AGENT = "mcphub/0.1"


def build_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
) -> httpx.Client:
    """Crea un `httpx.Client` con defaults seguros."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {"User-Agent": USER_AGENT}
    if extra_headers:
        headers.update(extra_headers)
    return httpx.Client(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )


def probe_url(url: str, settings: AppSettings | None = None) -> tuple[bool, str]:
    """Best-effort reachability check; any HTTP answer counts as reachable."""

    try:
        with build_client(settings) as client:
            response = client.get(url)
    except httpx.HTTPError as exc:
        return False, str(exc) or exc.__class__.__name__
    return True, f"HTTP {response.status_code}"
