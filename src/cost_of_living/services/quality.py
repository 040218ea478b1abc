"""Evidence cleaning and quality scoring.

``build_evidence`` turns a raw retrieval payload into an :class:`Evidence`
bundle; ``score_evidence`` rates it on a bounded 0-100 scale.  The score
is descriptive: it feeds the per-city data-quality metric but does not
gate retries.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from cost_of_living.domain.values import Evidence, KnowledgePanel, OrganicResult

TRUSTED_DOMAINS: tuple[str, ...] = ("numbeo", "expatistan", "livingcost")

POINTS_PER_RESULT = 5
MAX_RESULT_POINTS = 50
KNOWLEDGE_PANEL_POINTS = 20
POINTS_PER_TRUSTED_SOURCE = 10
MAX_TRUSTED_POINTS = 30
MAX_SCORE = 100


def build_evidence(raw: Mapping[str, Any], max_results: int = 25) -> Evidence:
    """Clean a raw search response into an :class:`Evidence` bundle.

    Keeps at most ``max_results`` organic hits.  Items that are not
    mappings are dropped; a missing or malformed knowledge panel is ``None``.
    """
    organic_raw = raw.get("organic") or []
    organic = tuple(
        OrganicResult.from_dict(item)
        for item in list(organic_raw)[:max_results]
        if isinstance(item, Mapping)
    )
    knowledge_raw = raw.get("knowledge")
    knowledge = (
        KnowledgePanel.from_dict(knowledge_raw) if isinstance(knowledge_raw, Mapping) else None
    )
    return Evidence(organic=organic, knowledge=knowledge)


def is_trusted(result: OrganicResult, domains: tuple[str, ...] = TRUSTED_DOMAINS) -> bool:
    source = result.source.lower()
    return any(domain in source for domain in domains)


def score_evidence(evidence: Evidence, trusted_domains: tuple[str, ...] = TRUSTED_DOMAINS) -> int:
    """Score an evidence bundle in [0, 100].

    +5 per organic result (max 50), +20 for a knowledge panel, +10 per
    trusted-domain result (max 30); the sum is capped at 100.
    """
    score = min(len(evidence.organic) * POINTS_PER_RESULT, MAX_RESULT_POINTS)
    if evidence.has_knowledge_panel:
        score += KNOWLEDGE_PANEL_POINTS
    trusted = sum(1 for item in evidence.organic if is_trusted(item, trusted_domains))
    score += min(trusted * POINTS_PER_TRUSTED_SOURCE, MAX_TRUSTED_POINTS)
    return min(score, MAX_SCORE)
