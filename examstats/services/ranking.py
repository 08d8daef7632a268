"""
Block ranking engine.

One generic algorithm parameterized by CATEGORY_SUBJECTS: qualify records
that have all three of a category's scores, sort by total descending with the
student id as a deterministic tie-break, and number ranks by position.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from examstats.config import Config
from examstats.constants import CATEGORIES, CATEGORY_SUBJECTS
from examstats.data_models.scores import CategoryMembership, RankingEntry, exact_total
from examstats.utils.exceptions import InvalidCategory


class RankingUtility:
    """Shared ranking logic for category leaderboards."""

    @staticmethod
    def validate_category(category: str) -> bool:
        """Validate a category code against the configured ones."""
        return category in CATEGORY_SUBJECTS

    @staticmethod
    def subjects_for(category: str) -> Sequence[str]:
        if not RankingUtility.validate_category(category):
            raise InvalidCategory(category)
        return CATEGORY_SUBJECTS[category]

    @staticmethod
    def clamp_k(k: int) -> int:
        """Clamp a requested leaderboard size to [1, TOP_K_MAX]."""
        return max(1, min(int(k), Config.TOP_K_MAX))

    @staticmethod
    def compute_ranking(records: Iterable, category: str) -> List[RankingEntry]:
        """
        Rank every qualifying record for a category.

        A record qualifies only if all three category subjects are present;
        absent scores are never treated as zero. Ties on total_score are
        ordered by ascending student id so repeated runs agree.

        Args:
            records: Every record in the store
            category: Category code ('A'..'D')

        Returns:
            Full ordering with contiguous ranks 1..N
        """
        first, second, third = RankingUtility.subjects_for(category)

        qualifying = []
        for record in records:
            a = getattr(record, first)
            b = getattr(record, second)
            c = getattr(record, third)
            if a is None or b is None or c is None:
                continue
            qualifying.append((record.student_id, (a, b, c), exact_total((a, b, c))))

        qualifying.sort(key=lambda item: (-item[2], item[0]))

        return [
            RankingEntry(student_id=student_id, scores=scores, total_score=total, rank=rank)
            for rank, (student_id, scores, total) in enumerate(qualifying, start=1)
        ]

    @staticmethod
    def top_k(ranking: Sequence[RankingEntry], k: int) -> List[RankingEntry]:
        """First k entries of a full ordering, k clamped to [1, TOP_K_MAX]."""
        return list(ranking[:RankingUtility.clamp_k(k)])

    @staticmethod
    def top_k_with_minimum(ranking: Sequence[RankingEntry], k: int, min_total: float) -> List[RankingEntry]:
        """
        Entries with total_score >= min_total, truncated to k.

        Ranks keep their position in the unfiltered ordering.
        """
        limit = RankingUtility.clamp_k(k)
        result = []
        for entry in ranking:
            if entry.total_score < min_total:
                # Ordering is descending, nothing further can qualify
                break
            result.append(entry)
            if len(result) >= limit:
                break
        return result

    @staticmethod
    def membership(
        rankings: Dict[str, Sequence[RankingEntry]],
        student_id: str,
        window: Optional[int] = None
    ) -> List[CategoryMembership]:
        """
        Categories in which a student ranks within the top window.

        Only the first `window` entries of each ranking are inspected.
        """
        if window is None:
            window = Config.MEMBERSHIP_WINDOW

        memberships = []
        for category in CATEGORIES:
            ranking = rankings.get(category)
            if not ranking:
                continue
            for entry in ranking[:window]:
                if entry.student_id == student_id:
                    memberships.append(CategoryMembership(
                        category=category,
                        rank=entry.rank,
                        total_score=entry.total_score
                    ))
                    break
        return memberships
