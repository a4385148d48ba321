"""Name normalization shared by every reconciliation stage.

Responsibilities of this module:
- reduce free-form names to a deterministic comparison form
- derive duplicate-grouping keys for dapp titles
- define the two identity predicates (strict and containment)

Containment matching is only safe against a closed, curated list such as the
chain reference table. Free-text entity names are compared with strict
equality; containment between arbitrary names merges unrelated entities.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Final

GENERIC_SUFFIXES: Final[frozenset[str]] = frozenset({"mainnet", "testnet", "network", "chain"})
BUSINESS_SUFFIXES: Final[frozenset[str]] = frozenset(
    {"finance", "protocol", "defi", "dao", "network", "chain"}
)
_LEADING_ARTICLE: Final[str] = "the "
_DISALLOWED = re.compile(r"[^a-z0-9 ]")


def normalize(raw: object) -> str:
    """Return the comparison form of ``raw``; never raises.

    Pipeline: lower-case, collapse whitespace, drop characters outside
    ``[a-z0-9 ]``, strip one trailing generic suffix, strip a leading
    ``the``, trim. Accents are folded before filtering so ``Séi`` keeps its
    letters.
    """

    if not isinstance(raw, str) or not raw:
        return ""
    text = unicodedata.normalize("NFKD", raw)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _collapse(text.lower())
    text = _collapse(_DISALLOWED.sub("", text))
    text = _strip_trailing_token(text, GENERIC_SUFFIXES)
    if text.startswith(_LEADING_ARTICLE):
        text = text[len(_LEADING_ARTICLE) :]
    return text.strip()


def identity_key(raw: object) -> str:
    """Grouping key for dapp titles: ``normalize`` minus trailing business suffixes.

    Suffixes are stripped until none is left, so ``"Foo Protocol"``, ``"Foo"``
    and ``"Foo Network Protocol"`` all share ``"foo"``. The first word is kept.
    """

    key = normalize(raw)
    while True:
        stripped = _strip_trailing_token(key, BUSINESS_SUFFIXES)
        if stripped == key:
            return key
        key = stripped


def names_equal(left: object, right: object) -> bool:
    """Strict identity: equal, non-empty normalized forms."""

    normalized_left = normalize(left)
    return bool(normalized_left) and normalized_left == normalize(right)


def names_overlap(left: object, right: object) -> bool:
    """Containment identity; only use against a curated reference list."""

    return contains_either(normalize(left), normalize(right))


def contains_either(normalized_left: str, normalized_right: str) -> bool:
    if not normalized_left or not normalized_right:
        return False
    return normalized_left in normalized_right or normalized_right in normalized_left


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _strip_trailing_token(text: str, tokens: frozenset[str]) -> str:
    head, separator, tail = text.rpartition(" ")
    if separator and head and tail in tokens:
        return head.rstrip()
    return text
