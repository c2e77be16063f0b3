"""Emoji names offered by the react modal's autocomplete."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, List, Mapping, Sequence, Tuple

import emoji

MAX_OPTIONS = 100


@lru_cache()
def static_emoji_keywords() -> Tuple[str, ...]:
    """Return the built-in ``:name:`` tokens, English names before aliases."""

    seen: dict[str, None] = {}
    for data in emoji.EMOJI_DATA.values():
        for token in (data.get("en"), *data.get("alias", ())):
            if token:
                seen.setdefault(token, None)
    return tuple(seen)


def build_candidates(static: Iterable[str], custom: Mapping[str, str] | Iterable[str]) -> List[str]:
    """Static tokens first, then custom emoji names wrapped in colons."""

    merged: dict[str, None] = {}
    for token in static:
        merged.setdefault(token, None)
    for name in custom:
        merged.setdefault(f":{name}:", None)
    return list(merged)


def matches_query(token: str, query: str) -> bool:
    """Prefix match that lets ``smi`` find ``:smile:`` as well as ``:smi``."""

    if token.startswith(query):
        return True
    return not query.startswith(":") and token.startswith(":") and token[1:].startswith(query)


def filter_candidates(candidates: Sequence[str], query: str, limit: int = MAX_OPTIONS) -> List[str]:
    """First *limit* candidates matching *query*, in candidate order.

    A query starting with ``:`` is a strict prefix of the token. A bare query
    also matches the name inside the colons, so ``sm`` finds ``:smile:``.
    """

    matches: List[str] = []
    for token in candidates:
        if matches_query(token, query):
            matches.append(token)
            if len(matches) >= limit:
                break
    return matches


def reaction_name(token: str) -> str:
    """Turn a selected ``:name:`` token into the name reactions.add expects."""

    return token.replace(":", "")
