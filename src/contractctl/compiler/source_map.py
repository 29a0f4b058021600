from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from ..manifest.models import EndpointDeclaration

MATCH_CAP = 3


class ResolutionTier(str, Enum):
    EXPLICIT_LIST = "explicit_list"
    EXPLICIT_PATTERN = "explicit_pattern"
    TAG_DERIVED = "tag_derived"
    DEFAULT_FALLBACK = "default_fallback"


@dataclass(frozen=True)
class SourceMapEntry:
    operation: str
    sources: tuple[str, ...]
    tier: ResolutionTier

    @property
    def orphan(self) -> bool:
        return not self.sources


def _dedupe(paths: list[str]) -> list[str]:
    return list(dict.fromkeys(paths))


def normalize_pattern(pattern: str) -> str:
    """`[GOV-HEADER-*]` -> `GOV-HEADER-`; text after the first `*` is ignored."""
    return pattern.strip().strip("[]").split("*", 1)[0]


def match_pattern(pattern: str, tag_index: Mapping[str, str]) -> list[str]:
    stripped = pattern.strip().strip("[]")
    if stripped in tag_index:
        return [tag_index[stripped]]
    needle = normalize_pattern(pattern)
    if not needle:
        return []
    return [path for tag, path in tag_index.items() if needle in tag]


def resolve_sources(endpoint: EndpointDeclaration, tag_index: Mapping[str, str]) -> SourceMapEntry:
    """Provenance for one endpoint; the first tier whose hint is present decides, even when it matches nothing."""
    hint = endpoint.source_hint
    if isinstance(hint, tuple):
        found: list[str] = []
        for pattern in hint:
            found.extend(match_pattern(pattern, tag_index))
        return SourceMapEntry(endpoint.label, tuple(_dedupe(found)), ResolutionTier.EXPLICIT_LIST)
    if isinstance(hint, str):
        found = _dedupe(match_pattern(hint, tag_index))[:MATCH_CAP]
        return SourceMapEntry(endpoint.label, tuple(found), ResolutionTier.EXPLICIT_PATTERN)
    if endpoint.tags:
        found = []
        for ep_tag in endpoint.tags:
            found.extend(path for tag, path in tag_index.items() if ep_tag in tag)
        return SourceMapEntry(endpoint.label, tuple(_dedupe(found)[:MATCH_CAP]), ResolutionTier.TAG_DERIVED)
    fallback = _dedupe(list(tag_index.values()))[:MATCH_CAP]
    return SourceMapEntry(endpoint.label, tuple(fallback), ResolutionTier.DEFAULT_FALLBACK)
