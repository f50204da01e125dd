import re
from dataclasses import dataclass
from typing import Optional

from core.context_store import ConversationContext

ANAPHORIC_MARKERS = ("this site", "this page", "it", "this", "that", "these", "those", "there")

_MARKER_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(m) for m in ANAPHORIC_MARKERS) + r")\b",
    re.IGNORECASE,
)
_EXTRACT_RE = re.compile(r"\bextract\b", re.IGNORECASE)
_FROM_RE = re.compile(r"\bfrom\b", re.IGNORECASE)
_CLICK_RE = re.compile(r"\bclick\b", re.IGNORECASE)
_ON_RE = re.compile(r"\bon\b", re.IGNORECASE)


@dataclass
class RewriteResult:
    command: str
    contextual: bool = False
    clarification: Optional[str] = None


def has_anaphoric_marker(command: str) -> bool:
    return _MARKER_RE.search(command or "") is not None


def _rest_after(verb_re: re.Pattern, command: str) -> str:
    rest = verb_re.sub("", command, count=1)
    return " ".join(rest.split())


def rewrite_command(command: str, context: ConversationContext) -> RewriteResult:
    """
    Resolve "it" / "this page" style references against the current site.

    Only one rewrite is applied; extraction wins over clicking. Without a
    current site the command passes through untouched.
    """
    site = context.current_session.site_context
    if not site or not has_anaphoric_marker(command):
        return RewriteResult(command=command)

    if _EXTRACT_RE.search(command) and not _FROM_RE.search(command):
        rewritten = f"extract from {site} {_rest_after(_EXTRACT_RE, command)}".rstrip()
    elif _CLICK_RE.search(command) and not _ON_RE.search(command):
        rewritten = f"click on {site} {_rest_after(_CLICK_RE, command)}".rstrip()
    else:
        return RewriteResult(command=command)

    return RewriteResult(
        command=rewritten,
        contextual=True,
        clarification=f"I understood that as referring to {site}.",
    )
