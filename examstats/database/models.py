from sqlalchemy import Column, Integer, String, Float, DateTime, CheckConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from examstats.constants import SUBJECTS

Base = declarative_base()


def _score_range_check(subject: str) -> CheckConstraint:
    return CheckConstraint(
        f"{subject} IS NULL OR ({subject} >= 0 AND {subject} <= 10)",
        name=f"ck_bang_diem_{subject}_range"
    )


class ScoreRow(Base):
    """Persistent exam record. Loaded in bulk, read-only afterwards."""
    __tablename__ = 'bang_diem'

    id = Column(Integer, primary_key=True)
    sbd = Column(String(20), nullable=False, unique=True, index=True)  # student identifier

    toan = Column(Float, nullable=True)
    ngu_van = Column(Float, nullable=True)
    ngoai_ngu = Column(Float, nullable=True)
    vat_li = Column(Float, nullable=True)
    hoa_hoc = Column(Float, nullable=True)
    sinh_hoc = Column(Float, nullable=True)
    lich_su = Column(Float, nullable=True)
    dia_li = Column(Float, nullable=True)
    gdcd = Column(Float, nullable=True)

    ma_ngoai_ngu = Column(String(10), nullable=True)  # foreign language code, e.g. N1

    # Metadata
    created_at = Column(DateTime, default=func.now())

    __table_args__ = tuple(_score_range_check(subject) for subject in SUBJECTS)

    def __repr__(self):
        return f"<ScoreRow(sbd='{self.sbd}')>"
