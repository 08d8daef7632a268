"""
Exam score data models for the analytics core.

Provides immutable data transfer objects for records, statistics snapshots and
rankings, plus the plain-dict forms used when they are written to the cache.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from examstats.constants import SUBJECTS, ScoreLevels


def exact_total(scores) -> float:
    """
    Sum scores in decimal so equal totals compare equal.

    Scores are stored as binary floats (7.6 + 9.2 + 7.2 != 24.0), so summing
    them directly would let float noise decide ties and minimum-total cutoffs.
    """
    return float(sum(Decimal(str(score)) for score in scores))


@dataclass(frozen=True)
class ScoreRecord:
    """One exam taker's scores. Absent subjects are None."""
    student_id: str
    toan: Optional[float] = None
    ngu_van: Optional[float] = None
    ngoai_ngu: Optional[float] = None
    vat_li: Optional[float] = None
    hoa_hoc: Optional[float] = None
    sinh_hoc: Optional[float] = None
    lich_su: Optional[float] = None
    dia_li: Optional[float] = None
    gdcd: Optional[float] = None
    foreign_language_code: Optional[str] = None

    def score_for(self, subject: str) -> Optional[float]:
        return getattr(self, subject)

    def average_score(self) -> Optional[float]:
        """Mean of the present subject scores, rounded to 2 decimals."""
        scores = [getattr(self, subject) for subject in SUBJECTS if getattr(self, subject) is not None]
        if not scores:
            return None
        return round(sum(scores) / len(scores), 2)

    def to_dict(self) -> Dict:
        data = {'student_id': self.student_id}
        for subject in SUBJECTS:
            data[subject] = getattr(self, subject)
        data['foreign_language_code'] = self.foreign_language_code
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "ScoreRecord":
        return cls(
            student_id=data['student_id'],
            foreign_language_code=data.get('foreign_language_code'),
            **{subject: data.get(subject) for subject in SUBJECTS}
        )


@dataclass(frozen=True)
class LevelCounts:
    """Histogram of one subject's scores across the four level buckets."""
    excellent: int = 0
    good: int = 0
    average: int = 0
    poor: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            ScoreLevels.EXCELLENT: self.excellent,
            ScoreLevels.GOOD: self.good,
            ScoreLevels.AVERAGE: self.average,
            ScoreLevels.POOR: self.poor,
            'total': self.total,
        }


@dataclass(frozen=True)
class StatisticsSnapshot:
    """Result of one aggregation pass over every record.

    Never mutated; a newer snapshot replaces it wholesale.
    """
    subjects: Dict[str, LevelCounts]
    total_records: int

    def for_subject(self, subject: str) -> LevelCounts:
        return self.subjects[subject]

    def to_dict(self) -> Dict:
        data = {subject: self.subjects[subject].to_dict() for subject in SUBJECTS}
        data['total_records'] = self.total_records
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "StatisticsSnapshot":
        return cls(
            subjects={subject: LevelCounts(**data[subject]) for subject in SUBJECTS},
            total_records=data['total_records']
        )


@dataclass(frozen=True)
class RankingEntry:
    """Single row of a category leaderboard."""
    student_id: str
    scores: Tuple[float, float, float]  # in the category's subject order
    total_score: float
    rank: int

    def to_dict(self) -> Dict:
        return {
            'student_id': self.student_id,
            'scores': list(self.scores),
            'total_score': self.total_score,
            'rank': self.rank,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "RankingEntry":
        return cls(
            student_id=data['student_id'],
            scores=tuple(data['scores']),
            total_score=data['total_score'],
            rank=data['rank']
        )


@dataclass(frozen=True)
class CategoryMembership:
    """A student's position within one category's top window."""
    category: str
    rank: int
    total_score: float


@dataclass(frozen=True)
class CategoryRankingPage:
    """Requested slice of a category leaderboard."""
    category: str
    entries: List[RankingEntry]
    total_qualifying: int
    min_total: Optional[float] = None
    subjects: Tuple[str, ...] = ()
