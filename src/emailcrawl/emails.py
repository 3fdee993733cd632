from __future__ import annotations
import codecs
import re
from typing import Iterable, List, NamedTuple, Optional

from .config import COMMON_TLDS

EMAIL_CANDIDATE_RE = re.compile(r"[a-z0-9._%+-]+@[a-z0-9-]+(?:\.[a-z0-9-]+)*\.[a-z]{2,}", re.IGNORECASE)
# Only starts a match where a run of local-part characters begins; later
# starts in the same run reach the same '@' and would fail the same way.
_RUN_START_RE = re.compile(r"(?<![a-z0-9._%+-])" + EMAIL_CANDIDATE_RE.pattern, re.IGNORECASE)
EMAIL_FULL_RE = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9-]+(?:\.[a-z0-9-]+)*\.([a-z]{2,})$", re.IGNORECASE)

ASSET_EXTENSIONS = (
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".css", ".js", ".ico", ".pdf", ".zip", ".rar", ".exe",
)

class Candidate(NamedTuple):
    email: str
    obfuscated: bool

def extract_candidates(text: str) -> List[str]:
    """Raw regex hits over the whole document, markup included.

    Same hits as a plain scan with EMAIL_CANDIDATE_RE, in linear time on long
    runs without an '@'.
    """
    text = text or ""
    out: List[str] = []
    m = _RUN_START_RE.search(text)
    while m is not None:
        out.append(m.group(0))
        pos = m.end()
        # a hit can end mid-run; the rest of that run is tried once, from here
        m = EMAIL_CANDIDATE_RE.match(text, pos) or _RUN_START_RE.search(text, pos)
    return out

def normalize_candidate(raw: str) -> str:
    s = raw.strip()
    i = 0
    while i < len(s) and not s[i].isalnum():
        i += 1
    return s[i:].lower()

def rot13(s: str) -> str:
    return codecs.decode(s, "rot13")

def _tld_after_at(email: str) -> str:
    parts = email.split("@")
    domain = parts[1] if len(parts) > 1 else ""
    return domain.split(".")[-1]

def is_likely_rot13(email: str, tlds: Iterable[str] = COMMON_TLDS) -> bool:
    """True when the ROT13-decoded form ends in a known TLD.

    Plain addresses almost never do: ``.com`` decodes to ``.pbz``. A few real
    TLDs are ROT13 images of other listed ones (``fr`` <-> ``se``), so those
    addresses are decoded too.
    """
    return _tld_after_at(rot13(email)) in tlds

def is_valid_email(email: str, tlds: Iterable[str] = COMMON_TLDS) -> bool:
    m = EMAIL_FULL_RE.match(email)
    if not m:
        return False
    return m.group(1).lower() in tlds

def is_asset_filename(email: str) -> bool:
    return any(ext in email for ext in ASSET_EXTENSIONS)

def resolve_candidate(raw: str, tlds: Iterable[str] = COMMON_TLDS) -> Optional[Candidate]:
    """Turn one regex hit into a validated address, or None.

    Obfuscated candidates are judged on their decoded form only; a decoded
    form that fails validation drops the candidate instead of falling back to
    the raw text.
    """
    email = normalize_candidate(raw)
    if not email:
        return None
    obfuscated = is_likely_rot13(email, tlds)
    if obfuscated:
        email = rot13(email)
    if not is_valid_email(email, tlds):
        return None
    if is_asset_filename(email):
        return None
    return Candidate(email, obfuscated)

def extract_emails(text: str, tlds: Iterable[str] = COMMON_TLDS) -> List[Candidate]:
    """Resolved candidates in document order. Repeats are kept; dedupe happens in the crawl state."""
    out: List[Candidate] = []
    for raw in extract_candidates(text):
        c = resolve_candidate(raw, tlds)
        if c is not None:
            out.append(c)
    return out

def matches_domain(email: str, domain: str) -> bool:
    return email.lower().endswith(domain.lower())
