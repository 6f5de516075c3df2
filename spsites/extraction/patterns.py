"""URL patterns and failure reasons for site-collection extraction.

Path prefixes are checked in priority order; the first match wins:
1. /sites/<name>     (team and communication sites)
2. /teams/<name>     (classic team sites)
3. /personal/<name>  (OneDrive for Business)
Anything else maps to the root site collection (the origin).
"""

import re
from typing import List, NamedTuple

# ============ Domain checks ============

# Applied to the whole trimmed string, not only the host
SHAREPOINT_DOMAIN_RE = re.compile(r"\.sharepoint\.com(?:$|/)", re.IGNORECASE)

# Near misses of the domain suffix
DOMAIN_TYPO_RES = (
    re.compile(r"sharepointcom", re.IGNORECASE),
    re.compile(r"sharepoint\.co(?:$|/)", re.IGNORECASE),
)

# Host syntax; labels of letters/digits/hyphens, alphabetic TLD
DOMAIN_RE = re.compile(r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,63}$")

# Leading/trailing whitespace plus byte-order marks left by Windows editors
TRIM_RE = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")

# Path segments that resolve to the current / parent directory
SINGLE_DOT_SEGMENTS = frozenset((".", "%2e"))
DOUBLE_DOT_SEGMENTS = frozenset(("..", ".%2e", "%2e.", "%2e%2e"))

ALLOWED_SCHEMES = ("http://", "https://")
DEFAULT_PORTS = {"http": 80, "https": 443}


# ============ Site collection prefixes ============


class SitePrefix(NamedTuple):
    name: str
    pattern: "re.Pattern[str]"


SITE_PREFIXES: List[SitePrefix] = [
    SitePrefix(name, re.compile(rf"^/{name}/([^/]+)", re.IGNORECASE))
    for name in ("sites", "teams", "personal")
]


# ============ Failure taxonomy ============


class FailureReason(NamedTuple):
    kind: str
    message: str


EMPTY_URL = FailureReason("empty_url", "Empty URL")
MISSING_PROTOCOL = FailureReason("missing_protocol", "Missing protocol (http/https)")
DOMAIN_TYPO = FailureReason("domain_typo", "Typo in domain (missing dot or incomplete)")
NOT_TARGET_DOMAIN = FailureReason("not_target_domain", "Not a SharePoint URL")
MALFORMED_URL = FailureReason("malformed_url", "Malformed URL")

FAILURE_REASONS = (EMPTY_URL, MISSING_PROTOCOL, DOMAIN_TYPO, NOT_TARGET_DOMAIN, MALFORMED_URL)
