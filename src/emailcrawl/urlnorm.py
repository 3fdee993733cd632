from __future__ import annotations
import warnings
from typing import List, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

# RSS, sitemaps and other xml bodies are scanned for links like any page.
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

BLOCKED_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:")
ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}

def normalize_seed(raw: str) -> str:
    """Prepend http:// unless the input already names http or https, then canonicalize."""
    url = raw.strip()
    if not (url.startswith("http://") or url.startswith("https://")):
        url = "http://" + url
    return canonical_url(url) or url

def target_domain(seed_url: str) -> str:
    try:
        return (urlsplit(seed_url).hostname or "").lower()
    except ValueError:
        return ""

def canonical_url(u: str) -> Optional[str]:
    """Lowercase scheme+host, drop a default port, resolve dot segments,
    give an empty path '/', drop the fragment.

    Returns None for anything that is not an http(s) URL with a host.
    """
    try:
        p = urlsplit(u)
        port = p.port
    except ValueError:
        return None
    scheme = p.scheme.lower()
    if scheme not in ALLOWED_SCHEMES or not p.netloc:
        return None
    netloc = p.netloc.lower()
    if port is not None and port == DEFAULT_PORTS[scheme]:
        netloc = netloc[:netloc.rfind(":")]
    path = p.path or "/"
    if not path.startswith("//") and any(seg in (".", "..") for seg in path.split("/")):
        path = urlsplit(urljoin("http://h/", path)).path
    return urlunsplit((scheme, netloc, path, p.query, ""))

def resolve_href(base_url: str, href: str) -> Optional[str]:
    href = href.strip()
    if not href or href.startswith(BLOCKED_PREFIXES):
        return None
    try:
        scheme = urlsplit(href).scheme
    except ValueError:
        return None
    if scheme:
        # Absolute: kept only for http(s), never re-based.
        return canonical_url(href)
    try:
        joined = urljoin(base_url, href)
    except ValueError:
        return None
    return canonical_url(joined)

def extract_links(html: str, base_url: str) -> List[str]:
    """Absolute http(s) targets of every <a href> on the page, in document order.

    Duplicates within a page are kept; the crawl state's visited set dedupes globally.
    """
    soup = BeautifulSoup(html, "lxml")
    links: List[str] = []
    for a in soup.select("a[href]"):
        href = a.get("href")
        if not isinstance(href, str):
            continue
        nu = resolve_href(base_url, href)
        if nu is not None:
            links.append(nu)
    return links
