from __future__ import annotations

from collections.abc import Sequence

from rapidfuzz import fuzz

# fuzz.ratio is a normalized Indel similarity in [0, 100]; inclusive cutoff.
SUGGESTION_THRESHOLD = 70.0


def _normalize(text: str) -> str:
    return str(text or "").strip().lower()


def suggest(
    query: str,
    catalog: Sequence[str],
    threshold: float = SUGGESTION_THRESHOLD,
) -> str | None:
    """Return the closest catalog name to ``query`` or None.

    Ties keep the first entry in catalog order.
    """
    if not catalog:
        return None

    needle = _normalize(query)
    if not needle:
        return None

    best_name: str | None = None
    best_score = -1.0
    for name in catalog:
        candidate = _normalize(name)
        if not candidate:
            continue
        score = fuzz.ratio(needle, candidate, score_cutoff=threshold)
        if score > best_score:
            best_name = candidate
            best_score = score

    if best_name is None or best_score < threshold:
        return None
    return best_name
