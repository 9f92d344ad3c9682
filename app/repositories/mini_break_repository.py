"""
Mini-Break Repository - Data access layer for the mini-break ledger
"""
from typing import Dict, List, Optional, Set
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from app.models.mini_break import MiniBreak


class MiniBreakRepository(BaseRepository[MiniBreak]):
    def __init__(self):
        super().__init__(MiniBreak)

    def get_workday_breaks(self, db: Session, workday_id: int) -> List[MiniBreak]:
        """All mini-breaks of a workday in insertion order using ORM"""
        return db.query(MiniBreak).filter(
            MiniBreak.mb_workday_id == workday_id
        ).order_by(MiniBreak.mb_id.asc()).all()

    def get_open_break(self, db: Session, workday_id: int) -> Optional[MiniBreak]:
        """Most recently inserted mini-break without end_at"""
        return db.query(MiniBreak).filter(
            MiniBreak.mb_workday_id == workday_id,
            MiniBreak.mb_end_at.is_(None)
        ).order_by(MiniBreak.mb_id.desc()).first()

    def open_break(self, db: Session, break_data: dict) -> MiniBreak:
        """Add a running mini-break to the caller's transaction"""
        mini_break = MiniBreak(**break_data)
        db.add(mini_break)
        db.flush()
        return mini_break

    def close_break(self, db: Session, mini_break: MiniBreak, break_data: dict) -> MiniBreak:
        for field, value in break_data.items():
            setattr(mini_break, field, value)
        db.flush()
        return mini_break

    def get_workday_ids_with_open_break(self, db: Session, workday_ids: List[int]) -> Set[int]:
        """Subset of workday_ids that currently have a running mini-break"""
        if not workday_ids:
            return set()
        rows = db.query(MiniBreak.mb_workday_id).filter(
            MiniBreak.mb_workday_id.in_(workday_ids),
            MiniBreak.mb_end_at.is_(None)
        ).distinct().all()
        return {row[0] for row in rows}

    def get_workday_totals(self, db: Session, workday_id: int) -> Dict[str, int]:
        """Sum of closed durations and overages using native SQL"""
        query = """
            SELECT COALESCE(SUM(mb_duration_minutes), 0) AS mb_minutes,
                   COALESCE(SUM(mb_exceeded_minutes), 0) AS mb_exceeded
            FROM mini_breaks
            WHERE mb_workday_id = :workday_id
        """
        rows = self.execute_raw_sql_dict(db, query, {"workday_id": workday_id})
        row = rows[0] if rows else {}
        return {
            "mb_minutes": int(row.get("mb_minutes") or 0),
            "mb_exceeded": int(row.get("mb_exceeded") or 0),
        }
