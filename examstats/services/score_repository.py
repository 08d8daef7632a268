"""
Record store adapter over the bang_diem table.

The analytics core only needs a full scan and a point lookup; range search
and bulk insert serve the search feature and the loading pipeline.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from examstats.constants import SUBJECTS
from examstats.data_models.scores import ScoreRecord
from examstats.database.models import ScoreRow
from examstats.services.base import BaseService
from examstats.utils.exceptions import DataSourceUnavailable

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = (ScoreRow.sbd,) + tuple(getattr(ScoreRow, subject) for subject in SUBJECTS) + (ScoreRow.ma_ngoai_ngu,)


def _to_record(row) -> ScoreRecord:
    return ScoreRecord(
        student_id=row.sbd,
        foreign_language_code=row.ma_ngoai_ngu,
        **{subject: getattr(row, subject) for subject in SUBJECTS}
    )


class ScoreRepository(BaseService):
    """Read access to exam records, with store failures reported as DataSourceUnavailable."""

    async def fetch_all_records(self) -> List[ScoreRecord]:
        """Full scan of every record, ordered by student id."""
        try:
            async with self.get_session() as session:
                result = await session.execute(select(*_RECORD_COLUMNS).order_by(ScoreRow.sbd))
                records = [_to_record(row) for row in result]
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Full scan of exam records failed: {e}")
            raise DataSourceUnavailable("full scan", str(e)) from e

        logger.debug(f"Full scan returned {len(records)} records")
        return records

    async def find_by_student_id(self, student_id: str) -> Optional[ScoreRecord]:
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(*_RECORD_COLUMNS).where(ScoreRow.sbd == student_id)
                )
                row = result.one_or_none()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Lookup of student {student_id} failed: {e}")
            raise DataSourceUnavailable("student lookup", str(e)) from e

        return _to_record(row) if row is not None else None

    async def count(self) -> int:
        try:
            async with self.get_session() as session:
                return await session.scalar(select(func.count(ScoreRow.id)))
        except (SQLAlchemyError, OSError) as e:
            raise DataSourceUnavailable("record count", str(e)) from e

    async def search(
        self,
        toan_gte: Optional[float] = None,
        toan_lte: Optional[float] = None,
        ngu_van_gte: Optional[float] = None,
        ngu_van_lte: Optional[float] = None,
        foreign_language_code: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[ScoreRecord]:
        """Search records by score ranges and foreign language code.

        Ranges are inclusive; records with an absent score never match a range
        on that subject.
        """
        query = select(*_RECORD_COLUMNS)
        if toan_gte is not None:
            query = query.where(ScoreRow.toan >= toan_gte)
        if toan_lte is not None:
            query = query.where(ScoreRow.toan <= toan_lte)
        if ngu_van_gte is not None:
            query = query.where(ScoreRow.ngu_van >= ngu_van_gte)
        if ngu_van_lte is not None:
            query = query.where(ScoreRow.ngu_van <= ngu_van_lte)
        if foreign_language_code is not None:
            query = query.where(ScoreRow.ma_ngoai_ngu == foreign_language_code)
        query = query.order_by(ScoreRow.sbd)
        if limit is not None:
            query = query.limit(limit)

        try:
            async with self.get_session() as session:
                result = await session.execute(query)
                return [_to_record(row) for row in result]
        except (SQLAlchemyError, OSError) as e:
            raise DataSourceUnavailable("record search", str(e)) from e

    async def add_records(self, records: Iterable[ScoreRecord]) -> int:
        """Insert records in one transaction. Used by loaders and tests."""
        rows = [
            ScoreRow(
                sbd=record.student_id,
                ma_ngoai_ngu=record.foreign_language_code,
                **{subject: getattr(record, subject) for subject in SUBJECTS}
            )
            for record in records
        ]
        try:
            async with self.get_session() as session:
                session.add_all(rows)
        except (SQLAlchemyError, OSError) as e:
            raise DataSourceUnavailable("record insert", str(e)) from e

        logger.info(f"Inserted {len(rows)} exam records")
        return len(rows)
