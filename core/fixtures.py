"""
Synthetic page content returned by the fake browser.

Nothing here touches the network; each intent gets a deterministic payload
shaped like what a real page would yield.
"""

from typing import Any, Dict, List
from urllib.parse import quote

WEATHER_URL = "https://weather.com"
EXTENSION_STORE_URL = "https://chromewebstore.google.com"
PROXY_SETTINGS_URL = "chrome://settings/system"


def search_results(term: str) -> List[Dict[str, str]]:
    slug = quote(term.replace(" ", "_"), safe="")
    q = quote(term, safe="")
    return [
        {
            "title": f"{term} - Wikipedia",
            "url": f"https://en.wikipedia.org/wiki/{slug}",
            "snippet": f"An overview of {term}, its history and current developments.",
        },
        {
            "title": f"What is {term}? A complete guide",
            "url": f"https://www.example.com/guides/{slug.lower()}",
            "snippet": f"Everything you need to know about {term}, explained step by step.",
        },
        {
            "title": f"Latest news on {term}",
            "url": f"https://news.example.com/search?q={q}",
            "snippet": f"Recent headlines and analysis about {term}.",
        },
    ]


def profile(site: str) -> Dict[str, Any]:
    return {
        "site": site,
        "display_name": "Demo User",
        "email": "demo.user@example.com",
        "status": "signed in",
        "unread_notifications": 3,
    }


def extraction(kind: str, source: str) -> Any:
    if kind == "table":
        return [
            ["Name", "Value", "Updated"],
            ["Visitors", "1,204", "today"],
            ["Signups", "87", "today"],
            ["Bounce rate", "41%", "yesterday"],
        ]
    if kind == "json":
        return {
            "source": source,
            "title": f"Content of {source}",
            "items": [
                {"id": 1, "label": "First item"},
                {"id": 2, "label": "Second item"},
            ],
        }
    if kind == "link":
        return [
            {"url": f"{source.rstrip('/')}/about", "text": "About"},
            {"url": f"{source.rstrip('/')}/docs", "text": "Documentation"},
            {"url": f"{source.rstrip('/')}/contact", "text": "Contact"},
        ]
    return f"Main text content extracted from {source}. The page lists its key sections, a short introduction and contact details."


def weather(location: str) -> Dict[str, str]:
    return {
        "location": location,
        "temperature": "72°F",
        "condition": "Sunny",
        "humidity": "45%",
        "wind": "5 mph",
        "source": WEATHER_URL,
    }
