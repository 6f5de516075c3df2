"""Site-collection extraction for a single pasted URL.

``extract_site_collection`` never raises: every problem with the input is
reported on the returned :class:`ExtractionResult`. Checks run in order:

1. trim + strip trailing slashes (empty -> "Empty URL")
2. literal http:// or https:// prefix
3. ``.sharepoint.com`` suffix, with a separate reason for common typos
4. structural parse (scheme, host, port, path)
5. path prefix match (/sites, /teams, /personal) or the bare origin
"""

from typing import Optional, Tuple
from urllib.parse import urlsplit

from ..models import ExtractionResult
from .patterns import (
    ALLOWED_SCHEMES,
    DEFAULT_PORTS,
    DOMAIN_RE,
    DOMAIN_TYPO_RES,
    DOMAIN_TYPO,
    EMPTY_URL,
    MALFORMED_URL,
    MISSING_PROTOCOL,
    NOT_TARGET_DOMAIN,
    SHAREPOINT_DOMAIN_RE,
    DOUBLE_DOT_SEGMENTS,
    SINGLE_DOT_SEGMENTS,
    SITE_PREFIXES,
    TRIM_RE,
    FailureReason,
)


def trim(value: str) -> str:
    """Strip surrounding whitespace and byte-order marks."""
    return TRIM_RE.sub("", value or "")


def normalize_line(value: str) -> str:
    """Trim whitespace and every trailing slash."""
    return trim(value).rstrip("/")


def remove_dot_segments(path: str) -> str:
    """Resolve "." and ".." segments (plain or %2e-encoded) in an absolute path."""
    if not path:
        return path
    out = []
    segments = path.split("/")[1:]
    for i, seg in enumerate(segments):
        last = i == len(segments) - 1
        low = seg.lower()
        if low in SINGLE_DOT_SEGMENTS:
            if last:
                out.append("")
        elif low in DOUBLE_DOT_SEGMENTS:
            if out:
                out.pop()
            if last:
                out.append("")
        else:
            out.append(seg)
    return "/" + "/".join(out)


def check_sharepoint_url(url: str) -> Optional[FailureReason]:
    """Return the failure reason for ``url`` or None when it looks like SharePoint."""
    if not url.startswith(ALLOWED_SCHEMES):
        return MISSING_PROTOCOL
    if not SHAREPOINT_DOMAIN_RE.search(url):
        if any(rx.search(url) for rx in DOMAIN_TYPO_RES):
            return DOMAIN_TYPO
        return NOT_TARGET_DOMAIN
    return None


def split_origin(url: str) -> Tuple[str, str]:
    """Split ``url`` into (origin, path) or raise ValueError.

    The origin keeps the host exactly as typed (no lower-casing) and drops
    credentials and the scheme's default port. Dot segments in the path are
    resolved the way a browser resolves them.
    """
    parts = urlsplit(url)
    host_port = parts.netloc.rpartition("@")[2]
    if not host_port or host_port.startswith("["):
        raise ValueError("missing or unsupported host")
    port = parts.port  # raises ValueError for non-numeric / out of range
    host = host_port.split(":", 1)[0]
    if not DOMAIN_RE.match(host):
        raise ValueError(f"invalid host {host!r}")
    origin = f"{parts.scheme}://{host}"
    if port is not None and port != DEFAULT_PORTS.get(parts.scheme):
        origin = f"{origin}:{port}"
    return origin, remove_dot_segments(parts.path)


def _failure(original: str, reason: FailureReason, echo: Optional[str] = None) -> ExtractionResult:
    return ExtractionResult(
        original=original,
        site_collection=echo,
        is_error=True,
        error_reason=reason.message,
        error_kind=reason.kind,
    )


def extract_site_collection(raw_line: str) -> ExtractionResult:
    """Map one raw input line to its site-collection URL.

    >>> extract_site_collection("https://contoso.sharepoint.com/sites/HR/Shared Documents/a.docx").site_collection
    'https://contoso.sharepoint.com/sites/HR'
    """
    original = trim(raw_line)
    url = normalize_line(original)
    if not url:
        return _failure(original, EMPTY_URL)

    reason = check_sharepoint_url(url)
    if reason is not None:
        return _failure(original, reason)

    try:
        origin, path = split_origin(url)
    except ValueError:
        return _failure(original, MALFORMED_URL, echo=url)

    for prefix in SITE_PREFIXES:
        m = prefix.pattern.match(path)
        if m:
            return ExtractionResult(original=original, site_collection=f"{origin}/{prefix.name}/{m.group(1)}")
    return ExtractionResult(original=original, site_collection=origin)
