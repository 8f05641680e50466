"""Prefix similarity scoring and result ordering for module search.

The scorer is intentionally simple: it compares the query and a module name
position by position, case-insensitively, over the length of the shorter
string. Queries that share a literal prefix with a module name score highest.
"""

from typing import Any, List, Protocol, Sequence, Tuple

import structlog

logger = structlog.get_logger("search_service.ranking")


class Rankable(Protocol):
    """Anything with a similarity ``ratio`` and a ``module`` name."""
    ratio: float
    module: str


def ratio(a: str, b: str) -> float:
    """Fraction of aligned positions where ``a`` and ``b`` agree.

    Only the first ``min(len(a), len(b))`` characters are compared.
    An empty overlap scores ``0.0``.

    >>> ratio("Test", "test")
    1.0
    >>> ratio("ab", "abcd")
    1.0
    """
    length = min(len(a), len(b))
    if length == 0:
        return 0.0

    matches = sum(
        1 for left, right in zip(a[:length], b[:length])
        if left.lower() == right.lower()
    )
    return matches / length


def ranking_key(result: Rankable) -> Tuple[float, int, str, str]:
    """Sort key: ratio desc, name length desc, then name ascending.

    Names are compared case-insensitively first, with the raw name as the
    final tiebreak so the order stays total.
    """
    return (-result.ratio, -len(result.module), result.module.casefold(), result.module)


class ModuleResultRanker:
    """Orders scored results and applies the result limit."""

    def rank(self, results: Sequence[Any], limit: int) -> List[Any]:
        """Return the best ``limit`` results, best first."""
        ordered = sorted(results, key=ranking_key)
        best = ordered[:limit]

        logger.debug(
            "Results ranked",
            candidate_count=len(results),
            returned_count=len(best),
            limit=limit
        )

        return best


def create_result_ranker() -> ModuleResultRanker:
    """Create the module result ranker."""
    return ModuleResultRanker()
