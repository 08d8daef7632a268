"""
Statistics aggregation engine.

Buckets every present subject score into one of four levels in a single pass
over the records, using a fixed counter table (one row per subject). Also
provides the in-memory filter over an existing snapshot.
"""

from typing import Dict, Iterable, List, Sequence

from examstats.constants import ALL_SELECTOR, SUBJECTS, ScoreLevels
from examstats.data_models.scores import LevelCounts, StatisticsSnapshot
from examstats.utils.exceptions import InvalidFilterError

# Counter row layout
_EXCELLENT, _GOOD, _AVERAGE, _POOR, _TOTAL = range(5)


def compute_snapshot(records: Iterable) -> StatisticsSnapshot:
    """
    Aggregate level histograms for all nine subjects in one pass.

    Records only need attribute access by subject key, so both ScoreRecord
    objects and database rows work.

    Args:
        records: Every record in the store

    Returns:
        StatisticsSnapshot with per-subject counts and the grand total
    """
    counters = [[0, 0, 0, 0, 0] for _ in SUBJECTS]
    total_records = 0

    for record in records:
        total_records += 1
        for index, subject in enumerate(SUBJECTS):
            score = getattr(record, subject)
            if score is None:
                continue
            row = counters[index]
            row[_TOTAL] += 1
            if score >= ScoreLevels.EXCELLENT_MIN:
                row[_EXCELLENT] += 1
            elif score >= ScoreLevels.GOOD_MIN:
                row[_GOOD] += 1
            elif score >= ScoreLevels.AVERAGE_MIN:
                row[_AVERAGE] += 1
            else:
                row[_POOR] += 1

    return StatisticsSnapshot(
        subjects={
            subject: LevelCounts(*counters[index])
            for index, subject in enumerate(SUBJECTS)
        },
        total_records=total_records
    )


def _resolve_selection(values, allowed: Sequence[str], label: str) -> List[str]:
    if not isinstance(values, (list, tuple)):
        raise InvalidFilterError(f'"{label}" must be a list. Use ["all"] to select everything')
    if not values:
        raise InvalidFilterError(f'"{label}" must not be empty')
    if ALL_SELECTOR in values:
        return list(allowed)

    invalid = [value for value in values if value not in allowed]
    if invalid:
        raise InvalidFilterError(
            f"Invalid {label}: {', '.join(map(str, invalid))}. Choose from: {', '.join(allowed)}"
        )
    # Canonical order, duplicates dropped
    return [value for value in allowed if value in values]


def validate_filter(subjects, levels):
    """Resolve a filter request into canonical subject and level lists."""
    return (
        _resolve_selection(subjects, SUBJECTS, 'subjects'),
        _resolve_selection(levels, ScoreLevels.ALL, 'levels'),
    )


def filter_snapshot(snapshot: StatisticsSnapshot, subjects, levels) -> Dict[str, Dict[str, int]]:
    """
    Select a subset of subjects and levels from a snapshot.

    Each selected subject keeps its total alongside the requested level counts.
    """
    selected_subjects, selected_levels = validate_filter(subjects, levels)

    filtered = {}
    for subject in selected_subjects:
        counts = snapshot.for_subject(subject)
        entry = {'total': counts.total}
        for level in selected_levels:
            entry[level] = getattr(counts, level)
        filtered[subject] = entry
    return filtered
