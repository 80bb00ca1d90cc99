"""
AI Response Parser

Detects category/goal/routine creation suggestions written in plain text
(English or Japanese) in assistant replies.
"""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel

_QUOTE_OPEN = "[「『\"]?"
_QUOTE_CLOSE = "[」』\"]?"


def _patterns(kind_ja: str, kind_en: str) -> List[re.Pattern]:
    return [
        re.compile(rf"「(.+?)」(?:という|という名前の)?{kind_ja}(?:を作成|を追加)"),
        re.compile(rf"{kind_ja}[「『](.+?)[」』](?:を作成|を追加)"),
        re.compile(rf"create (?:a )?(?:new )?{kind_en}[:\s]+{_QUOTE_OPEN}(.+?){_QUOTE_CLOSE}$", re.IGNORECASE),
        re.compile(rf"new {kind_en}[:\s]+{_QUOTE_OPEN}(.+?){_QUOTE_CLOSE}$", re.IGNORECASE),
    ]


# Checked in this order; the first kind with a match wins
PATTERNS: Dict[str, List[re.Pattern]] = {
    "category": _patterns("カテゴリ", "category"),
    "goal": _patterns("ゴール", "goal"),
    "routine": _patterns("ルーティン", "routine"),
}


class CreateSuggestion(BaseModel):
    type: str  # 'category' | 'goal' | 'routine'
    title: str
    description: Optional[str] = None


def parse_create_suggestion(content: str) -> Optional[CreateSuggestion]:
    """Return the first creation suggestion found in `content`."""
    for kind, patterns in PATTERNS.items():
        for pattern in patterns:
            for line in content.splitlines() or [content]:
                match = pattern.search(line.strip())
                if match and match.group(1).strip():
                    return CreateSuggestion(type=kind, title=match.group(1).strip())
    return None


def parse_all_suggestions(content: str) -> List[CreateSuggestion]:
    """One suggestion per line at most, deduplicated by type and title."""
    seen = set()
    suggestions = []
    for line in content.split("\n"):
        suggestion = parse_create_suggestion(line)
        if suggestion is None:
            continue
        key = (suggestion.type, suggestion.title)
        if key in seen:
            continue
        seen.add(key)
        suggestions.append(suggestion)
    return suggestions


def has_create_suggestion(content: str) -> bool:
    return parse_create_suggestion(content) is not None


def extract_description(content: str, title: str) -> Optional[str]:
    """Look for `title: description` or `titleは...です` near the title."""
    escaped = re.escape(title)
    patterns = [
        re.compile(rf"{escaped}[：:]\s*(.+?)(?:\n|$)", re.IGNORECASE),
        re.compile(rf"{escaped}は(.+?)(?:です|。|\n|$)", re.IGNORECASE),
    ]

    for pattern in patterns:
        match = pattern.search(content)
        if match and match.group(1):
            description = match.group(1).strip()
            if 5 < len(description) < 200:
                return description
    return None
