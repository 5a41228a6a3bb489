from datetime import date
from database.db_manager import DatabaseManager
from models.skipped_occurrence import SkippedOccurrence
from utils.date_helpers import parse_date, format_date


class SkippedOccurrenceDAO:
    """Persists per-occurrence skip markers, unique per (rule_id, date)."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> SkippedOccurrence:
        return SkippedOccurrence(
            id=row["id"],
            rule_id=row["rule_id"],
            date=parse_date(row["date"]),
            created_at=row["created_at"],
        )

    def upsert(self, rule_id: int, on: date) -> None:
        """Insert a marker; an existing one for the same day is left untouched."""
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO skipped_occurrences(rule_id, date) VALUES (?, ?)",
                (rule_id, format_date(on)),
            )

    def delete(self, rule_id: int, on: date) -> int:
        """Remove the marker for (rule_id, on). Returns the number of rows removed."""
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM skipped_occurrences WHERE rule_id = ? AND date = ?",
                (rule_id, format_date(on)),
            )
        return cursor.rowcount

    def get_by_rule_ids(self, rule_ids: list[int]) -> dict[int, list[SkippedOccurrence]]:
        """Fetch markers for many rules in a single query.
        Returns {rule_id: [skip, ...]}."""
        if not rule_ids:
            return {}
        placeholders = ",".join("?" * len(rule_ids))
        with self._db.connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM skipped_occurrences WHERE rule_id IN ({placeholders})"
                " ORDER BY date ASC, id ASC",
                list(rule_ids),
            ).fetchall()
        result: dict[int, list[SkippedOccurrence]] = {}
        for row in rows:
            skip = self._row_to_model(row)
            result.setdefault(skip.rule_id, []).append(skip)
        return result
