from __future__ import annotations

import re
from typing import Optional, Tuple


_ARXIV_ID_RE = re.compile(
    r"(?P<id>(?:\d{4}\.\d{4,5})(?:v\d+)?|[a-z\-]+(?:\.[A-Z]{2})?/\d{7}(?:v\d+)?)",
    re.IGNORECASE,
)
_VERSION_SUFFIX_RE = re.compile(r"^(?P<base>.*?)(?P<version>v\d+)?$", re.IGNORECASE)


def extract_id_from_url(value: str | None) -> str:
    """Strip the abs/pdf URL prefix, keeping any version suffix."""
    text = (value or "").strip()
    if not text:
        return ""

    lowered = text.lower()
    for marker in ("arxiv.org/abs/", "arxiv.org/pdf/"):
        idx = lowered.find(marker)
        if idx >= 0:
            text = text[idx + len(marker) :]
            break

    text = text.split("?", 1)[0].split("#", 1)[0]
    if text.lower().endswith(".pdf"):
        text = text[:-4]
    return text.strip(" /")


def split_arxiv_version(value: str | None) -> Tuple[str, str]:
    """Split ``2301.12345v2`` into ``("2301.12345", "v2")``.

    Ids without a suffix return an empty version.
    """
    text = extract_id_from_url(value)
    if not text:
        return "", ""
    match = _VERSION_SUFFIX_RE.match(text)
    if not match:
        return text, ""
    return match.group("base"), (match.group("version") or "").lower()


def normalize_arxiv_id(value: str | None) -> Optional[str]:
    text = extract_id_from_url(value).replace("arxiv:", "")
    match = _ARXIV_ID_RE.search(text)
    if not match:
        return None
    base, _ = split_arxiv_version(match.group("id"))
    return base or None


def snapshot_file_stem(arxiv_id: str) -> str:
    """File name stem for a paper; old-style ids contain a slash."""
    return arxiv_id.replace("/", "_")
