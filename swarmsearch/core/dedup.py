"""
Dedup Engine
Collapses same-swarm results from several sources into one entry
"""
from typing import Dict, List

from ..models.magnet import combine_magnets
from ..models.search_result import RankedResult
from .scoring import normalize_text


def rank_key(result: RankedResult):
    return (-(result.score or 0), -(result.seeders or 0))


def group_key(result: RankedResult) -> str:
    return result.infohash or normalize_text(result.title)


def dedupe(results: List[RankedResult]) -> List[RankedResult]:
    """
    Group by infohash (or normalized title), keep the best-ranked member of
    each group and give it a magnet carrying every member's trackers.
    """
    groups: Dict[str, List[RankedResult]] = {}
    for result in results:
        key = group_key(result)
        if not key:
            continue
        groups.setdefault(key, []).append(result)

    deduped: List[RankedResult] = []
    for group in groups.values():
        group.sort(key=rank_key)
        best = group[0]
        magnets = [r.magnet for r in group if r.magnet]
        if len(set(magnets)) > 1:
            combined = combine_magnets(magnets)
            if combined:
                best.magnet = combined
        deduped.append(best)

    deduped.sort(key=rank_key)
    return deduped
