import re
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from errors import InvalidInputError

SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
DEFAULT_SCHEME = "https://"


def normalize_url(url: str) -> str:
    url = url.strip()
    if not SCHEME_RE.match(url):
        url = DEFAULT_SCHEME + url
    return url


def _check_target(url: str, raw: str) -> None:
    if any(ch.isspace() for ch in url):
        raise InvalidInputError(f"Malformed URL (contains whitespace): {raw!r}")
    if not urlparse(url).netloc:
        raise InvalidInputError(f"Malformed URL (no host): {raw!r}")


def build_targets(urls: Iterable[str]) -> List[str]:
    """
    Normalize and deduplicate URLs, keeping first-seen order.

    Normalization happens before deduplication, so "a.com" and
    "https://a.com" collapse into one target.
    """
    seen = set()
    targets: List[str] = []
    for raw in urls:
        if raw is None or not raw.strip():
            continue
        url = normalize_url(raw)
        _check_target(url, raw)
        if url in seen:
            continue
        seen.add(url)
        targets.append(url)
    return targets


def read_url_file(path: str) -> List[str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise InvalidInputError(f"Cannot read URL file {path}: {e.strerror or e}")

    urls = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        urls.append(line)
    return urls


def collect_targets(urls: Iterable[str], url_file: Optional[str] = None) -> List[str]:
    combined = list(urls or [])
    if url_file:
        combined.extend(read_url_file(url_file))

    targets = build_targets(combined)
    if not targets:
        raise InvalidInputError(
            "No URLs to audit.",
            remedy="Pass one or more URLs, or --url-file with one URL per line.",
        )
    return targets
