"""
Keyword and pattern rules behind intent classification.

Predicates decide whether a command belongs to an intent; extractors pull
parameters out of it. Extractors never fail: every parameter has a default.
"""

import re
from typing import Optional, Tuple
from urllib.parse import quote

# --- defaults ---
DEFAULT_TASK_NAME = "Automated Task"
DEFAULT_TASK_COMMAND = "search Google"
DEFAULT_INTERVAL_MINUTES = 5
DEFAULT_LOGIN_SITE = "the website"
DEFAULT_DATA_TYPE = "text"
DEFAULT_SEARCH_TERM = "AI browser automation"
DEFAULT_EXTENSION = "Ad Blocker"
DEFAULT_LOCATION = "your location"

LOGIN_SITES = {
    "Gmail": "https://mail.google.com",
    "Facebook": "https://www.facebook.com",
    "Twitter": "https://twitter.com",
    "GitHub": "https://github.com",
}
DEFAULT_LOGIN_URL = "https://example.com"

SEARCH_ENGINES = {
    "google": {
        "label": "Google",
        "home": "https://www.google.com",
        "search": "https://www.google.com/search?q={q}",
        "button": 'Click "Google Search" button',
    },
    "bing": {
        "label": "Bing",
        "home": "https://www.bing.com",
        "search": "https://www.bing.com/search?q={q}",
        "button": "Click the Bing search button",
    },
    "duckduckgo": {
        "label": "DuckDuckGo",
        "home": "https://duckduckgo.com",
        "search": "https://duckduckgo.com/?q={q}",
        "button": "Click the DuckDuckGo search button",
    },
}

KNOWN_SITES = {
    "google": "https://www.google.com",
    "gmail": "https://mail.google.com",
    "facebook": "https://www.facebook.com",
    "twitter": "https://twitter.com",
    "github": "https://github.com",
    "youtube": "https://www.youtube.com",
    "wikipedia": "https://www.wikipedia.org",
    "reddit": "https://www.reddit.com",
    "amazon": "https://www.amazon.com",
    "bing": "https://www.bing.com",
    "duckduckgo": "https://duckduckgo.com",
}

DATA_TYPES = ("table", "json", "link", "text")

_UNIT_MINUTES = {"minute": 1, "min": 1, "hour": 60, "hr": 60, "day": 1440}

# Single quotes only count at word edges, so "what's" / "don't" stay intact
_QUOTED_RE = re.compile(r"\"([^\"]+)\"|“([^”]+)”|(?<!\w)'([^']+)'(?!\w)")
_URL_RE = re.compile(r"https?://[^\s\"']+", re.IGNORECASE)
_DOMAIN_RE = re.compile(
    r"\b((?:[a-z0-9-]+\.)+(?:com|org|net|io|dev|edu|gov|co|ai|app)(?:/[^\s\"']*)?)",
    re.IGNORECASE,
)
_PROXY_RE = re.compile(r"\b((?:\d{1,3}\.){3}\d{1,3}|localhost|[a-z0-9-]+(?:\.[a-z0-9-]+)+):(\d{2,5})\b", re.IGNORECASE)
_INTERVAL_RE = re.compile(r"\bevery\s+(\d+)?\s*(minute|min|hour|hr|day)s?\b", re.IGNORECASE)
_RECALL_RE = re.compile(
    r"\b(?:previous|last|earlier|past|recent)\b.*\b(?:results?|data|findings)\b"
    r"|\bshow\b.*\bresults\b"
    r"|\bwhat did you find\b",
    re.IGNORECASE,
)


def normalize(text: str) -> str:
    return " ".join((text or "").strip().split())


def _has(pattern: str, text: str) -> bool:
    return re.search(pattern, text, re.IGNORECASE) is not None


def quoted_phrase(text: str) -> Optional[str]:
    m = _QUOTED_RE.search(text)
    if not m:
        return None
    phrase = next(group for group in m.groups() if group is not None).strip()
    return phrase or None


def without_quotes(text: str) -> str:
    return normalize(_QUOTED_RE.sub(" ", text))


def is_recall(text: str) -> bool:
    return _RECALL_RE.search(text) is not None


# --- predicates, in resolver order ---

def is_task_management(text: str) -> bool:
    if _has(r"\bschedul", text):
        return True
    if _INTERVAL_RE.search(text):
        return True
    if _has(r"\b(?:list|show|view)\b.*\btasks\b", text):
        return True
    return _has(r"\b(?:pause|resume|delete|remove|cancel|stop)\b.*\btask\b", text)


def is_proxy_command(text: str) -> bool:
    return _has(r"\bprox(?:y|ies)\b", text)


def is_extension_command(text: str) -> bool:
    return _has(r"\bextensions?\b|\badd-?ons?\b", text)


def is_search_command(text: str) -> bool:
    if is_recall(text):
        return False
    return _has(r"\bsearch\b|\blook\s+up\b|\bgoogle\s+for\b", text)


def is_login_command(text: str) -> bool:
    return _has(r"\blog\s*in(?:to)?\b|\blogin\b|\bsign\s*in\b", text)


def is_navigation_command(text: str) -> bool:
    if is_login_command(text) or is_recall(text):
        return False
    if _has(r"\bgoogle\b", text):
        return True
    return _has(r"\b(?:go\s+to|navigate\s+to|navigate|open|visit|browse\s+to)\b", text) and navigation_target(text) is not None


def is_extraction_command(text: str) -> bool:
    return _has(r"\b(?:extract|scrape)\b", text)


def is_weather_command(text: str) -> bool:
    return _has(r"\bweather\b|\bforecast\b", text) and not is_recall(text)


def is_previous_results_command(text: str) -> bool:
    return is_recall(text)


# --- extractors ---

def task_management_action(text: str) -> str:
    """create / list / pause / resume / delete"""
    if _has(r"\b(?:list|show|view)\b.*\btasks\b", text) and not _has(r"\bevery\b", text):
        return "list"
    if _has(r"\b(?:delete|remove|cancel)\b.*\btask\b", text):
        return "delete"
    if _has(r"\b(?:pause|stop)\b.*\btask\b", text):
        return "pause"
    if _has(r"\bresume\b.*\btask\b", text):
        return "resume"
    return "create"


def task_name(text: str) -> str:
    return quoted_phrase(text) or DEFAULT_TASK_NAME


def task_command(text: str) -> str:
    bare = without_quotes(text)
    patterns = (
        r"\b(?:to|run)\s+(.+?)(?:\s+every\b.*)?$",
        r"\bevery\s+\d*\s*(?:minute|min|hour|hr|day)s?\s+(.+)$",
    )
    for pattern in patterns:
        m = re.search(pattern, bare, re.IGNORECASE)
        if m:
            command = m.group(1).strip(" .,!?")
            if command:
                return command
    return DEFAULT_TASK_COMMAND


def interval_minutes(text: str) -> int:
    m = _INTERVAL_RE.search(text)
    if not m:
        return DEFAULT_INTERVAL_MINUTES
    count = int(m.group(1)) if m.group(1) else 1
    unit = m.group(2).lower()
    return max(1, count * _UNIT_MINUTES.get(unit, 1))


def interval_spec(minutes: int) -> str:
    return f"*/{minutes} * * * *"


def proxy_address(text: str) -> Optional[str]:
    m = _PROXY_RE.search(text)
    return f"{m.group(1)}:{m.group(2)}" if m else None


def wants_removal(text: str) -> bool:
    return _has(r"\b(?:remove|uninstall|disable|clear|delete|turn\s+off)\b", text)


def extension_name(text: str) -> str:
    quoted = quoted_phrase(text)
    if quoted:
        return quoted
    patterns = (
        r"\b(?:install|add|remove|uninstall|enable|disable)\s+(?:the\s+|an?\s+)?(.+?)\s+(?:extension|add-?on)\b",
        r"\b(?:extension|add-?on)\s+(?:called\s+|named\s+)?(.+?)[.!?]*$",
    )
    for pattern in patterns:
        m = re.search(pattern, text, re.IGNORECASE)
        if m:
            name = m.group(1).strip(" .,!?")
            if name and name.lower() not in ("the", "an", "a", "browser", "new"):
                return name
    return DEFAULT_EXTENSION


def search_engine(text: str, preferred: str = "google") -> str:
    for key in SEARCH_ENGINES:
        if _has(rf"\b{key}\b", text):
            return key
    return preferred if preferred in SEARCH_ENGINES else "google"


def search_term(text: str) -> str:
    engines = "|".join(SEARCH_ENGINES)
    patterns = (
        rf"\b(?:search(?:\s+(?:{engines}))?\s+for|look\s+up|google\s+for)\s+(.+?)(?:\s+(?:on|using|with)\s+(?:{engines}))?[.!?]*$",
        rf"\bsearch\s+(?!(?:{engines})\b)(.+?)(?:\s+(?:on|using|with)\s+(?:{engines}))?[.!?]*$",
    )
    for pattern in patterns:
        m = re.search(pattern, text, re.IGNORECASE)
        if m:
            term = m.group(1).strip(" \"'“”.,!?")
            if term:
                return term
    return DEFAULT_SEARCH_TERM


def search_url(engine: str, term: str) -> str:
    return SEARCH_ENGINES[engine]["search"].format(q=quote(term, safe=""))


def _as_url(candidate: str) -> str:
    candidate = candidate.rstrip(".,!?")
    return candidate if candidate.lower().startswith(("http://", "https://")) else f"https://{candidate}"


def explicit_url(text: str) -> Optional[str]:
    m = _URL_RE.search(text)
    if m:
        return m.group(0).rstrip(".,!?")
    m = _DOMAIN_RE.search(text)
    if m:
        return _as_url(m.group(1))
    return None


def navigation_target(text: str) -> Optional[str]:
    url = explicit_url(text)
    if url:
        return url
    for name, site in KNOWN_SITES.items():
        if _has(rf"\b{name}\b", text):
            return site
    return None


def login_site(text: str) -> Tuple[str, str]:
    """(display name, base url); unknown sites map to a generic site."""
    for name, url in LOGIN_SITES.items():
        if _has(rf"\b{name}\b", text):
            return name, url
    return DEFAULT_LOGIN_SITE, DEFAULT_LOGIN_URL


def profile_key(site: str) -> str:
    token = "website" if site == DEFAULT_LOGIN_SITE else site.lower()
    return f"{token}Profile"


def data_type(text: str) -> str:
    m = re.search(r"\b(table|json|links?|text)\b", text, re.IGNORECASE)
    if not m:
        return DEFAULT_DATA_TYPE
    kind = m.group(1).lower()
    return "link" if kind.startswith("link") else kind


def extraction_source(text: str) -> Optional[str]:
    m = re.search(r"\bfrom\s+(\S+)", text, re.IGNORECASE)
    if not m:
        return None
    candidate = m.group(1).strip("\"'.,!?")
    if candidate.lower() in ("this", "that", "it", "the", "here", "there"):
        return None
    return explicit_url(candidate) or navigation_target(candidate)


def weather_location(text: str) -> str:
    m = re.search(
        r"\b(?:in|for|at)\s+([A-Za-z][A-Za-z .'-]*?)(?:\s+(?:today|tomorrow|tonight|now|please|this week))?[?.!]*$",
        text,
        re.IGNORECASE,
    )
    if m:
        location = m.group(1).strip()
        if location and location.lower() not in ("me", "here", "today", "now", "the weather"):
            return location
    return DEFAULT_LOCATION


def recall_category(text: str) -> Optional[str]:
    """Which cached payload family a recall command names, if any."""
    lowered = text.lower()
    for category, pattern in (
        ("weather", r"\bweather\b|\bforecast\b"),
        ("search", r"\bsearch(?:es)?\b"),
        ("profile", r"\blog\s*in\b|\blogin\b|\bprofile\b"),
        ("extraction", r"\bextract\w*\b|\bscrap\w*\b"),
        ("tasks", r"\btasks?\b"),
    ):
        if re.search(pattern, lowered):
            return category
    return None
