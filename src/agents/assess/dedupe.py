"""Merge duplicate regulation findings returned by the model under the same code."""

import logging
from typing import Any, Dict, Iterable, List

from src.models.assessment import ApplicableRegulation, Priority

logger = logging.getLogger(__name__)

PRIORITY_RANK = {
    Priority.HIGH.value: 3,
    Priority.MEDIUM.value: 2,
    Priority.LOW.value: 1,
}


def _priority_rank(priority: Any) -> int:
    return PRIORITY_RANK.get(priority, PRIORITY_RANK[Priority.LOW.value])


def _unique(*sequences: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for seq in sequences:
        for item in seq or []:
            seen.setdefault(item, None)
    return list(seen)


def _is_absent(value: Any) -> bool:
    return value is None or value == ""


def _merge(existing: ApplicableRegulation, new: ApplicableRegulation) -> ApplicableRegulation:
    if existing.reasoning and new.reasoning:
        reasoning = f"{existing.reasoning} {new.reasoning}".strip()
    else:
        reasoning = existing.reasoning or new.reasoning

    if _priority_rank(existing.priority) >= _priority_rank(new.priority):
        priority = existing.priority
    else:
        priority = new.priority

    # First-seen thresholds_met/category win even if a later entry is more specific.
    return existing.model_copy(update={
        "confidence": max(existing.confidence or 0.0, new.confidence or 0.0),
        "triggers": _unique(existing.triggers, new.triggers),
        "reasoning": reasoning,
        "priority": priority,
        "key_obligations": _unique(existing.key_obligations, new.key_obligations),
        "next_steps": _unique(existing.next_steps, new.next_steps),
        "thresholds_met": new.thresholds_met if _is_absent(existing.thresholds_met) else existing.thresholds_met,
        "category": new.category if _is_absent(existing.category) else existing.category,
    })


def deduplicate_regulations(regulations: Iterable[ApplicableRegulation]) -> List[ApplicableRegulation]:
    """Collapse findings to one entry per code, keeping first-seen order.

    Evidence lists are unioned, confidence and priority take the maximum, and
    reasoning strings are joined. Applying it to its own output is a no-op.
    """
    merged: Dict[str, ApplicableRegulation] = {}

    for reg in regulations:
        if reg.code in merged:
            merged[reg.code] = _merge(merged[reg.code], reg)
            logger.debug("Merged duplicate regulation: %s", reg.code)
        else:
            merged[reg.code] = reg.model_copy()

    return list(merged.values())
