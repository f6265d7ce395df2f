import tldextract
from urllib.parse import urlparse, urlunparse

from auditor.errors import InvalidURLError

# Offline extractor: use the bundled public-suffix snapshot, never fetch it at runtime.
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())


def validate_url(url: str) -> str:
    """
    Ensure the input is an absolute http(s) URL with a hostname.
    Returns the stripped URL; raises InvalidURLError otherwise.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError("Invalid URL provided: empty value")

    candidate = url.strip()
    try:
        parsed = urlparse(candidate)
        hostname = parsed.hostname
        # Accessing .port validates the port component
        parsed.port
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL provided: {candidate} ({e})") from e

    if parsed.scheme not in ("http", "https") or not hostname:
        raise InvalidURLError(f"Invalid URL provided: {candidate}")
    return candidate


def base_url(url: str) -> str:
    """scheme://host[:port] with no path, query or fragment."""
    p = urlparse(url)
    return urlunparse((p.scheme, p.netloc, "", "", "", ""))


def hostname_of(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def registrable_domain(url: str) -> str:
    """
    example.co.uk for https://blog.example.co.uk/x.
    Uses tldextract so multi-label public suffixes are handled correctly.
    """
    ext = _EXTRACT(url)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}".lower()
    return hostname_of(url)
