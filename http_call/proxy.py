"""Proxy selection for outgoing requests."""

from http_call.settings import HttpCallSettings, get_settings


def _bypasses_proxy(host: str, no_proxy: str | None) -> bool:
    if not no_proxy:
        return False
    host = host.lower()
    for entry in no_proxy.split(","):
        entry = entry.strip().lower()
        if not entry:
            continue
        if entry == "*":
            return True
        suffix = entry.lstrip(".")
        if host == suffix or host.endswith(f".{suffix}"):
            return True
    return False


def proxy_for(
    secure: bool,
    host: str,
    settings: HttpCallSettings | None = None,
) -> str | None:
    """Select the proxy URL for a request.

    Args:
        secure: Whether the request uses https.
        host: Target host name.
        settings: Settings to read; loaded from the environment if None.

    Returns:
        Proxy URL, or None to connect directly.
    """
    settings = settings or get_settings()
    proxy = settings.https_proxy if secure else settings.http_proxy
    if not proxy or _bypasses_proxy(host, settings.no_proxy):
        return None
    return proxy
