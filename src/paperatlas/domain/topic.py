"""
Topic taxonomy entry.

Topics are plain data: match rules are keyword lists interpreted by the
topic tagger, there is no per-topic behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _str_list(value: Any) -> List[str]:
    if not value:
        return []
    return [str(item) for item in value if item]


@dataclass(frozen=True)
class Topic:
    id: str
    title: str = ""
    scope: str = ""
    query: Optional[str] = None
    keywords_any: List[str] = field(default_factory=list)
    keywords_all: List[str] = field(default_factory=list)
    exclude_keywords: List[str] = field(default_factory=list)
    category_whitelist: List[str] = field(default_factory=list)
    anchors: List[str] = field(default_factory=list)
    group: Optional[str] = None
    priority: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Topic":
        if not data.get("id"):
            raise ValueError("topic entry is missing 'id'")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or data["id"]),
            scope=str(data.get("scope") or ""),
            query=data.get("query") or None,
            keywords_any=_str_list(data.get("keywords_any")),
            keywords_all=_str_list(data.get("keywords_all")),
            exclude_keywords=_str_list(data.get("exclude_keywords")),
            category_whitelist=_str_list(data.get("category_whitelist")),
            anchors=_str_list(data.get("anchors")),
            group=data.get("group"),
            priority=data.get("priority"),
        )
