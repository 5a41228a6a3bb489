from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_rule import RecurringRule
from utils.date_helpers import parse_date, format_date

# Columns written by create()/update(), in table order.
_WRITABLE = (
    "frequency", "interval", "amount", "currency", "spread", "type",
    "start_date", "end_date", "category_id", "merchant_id", "description",
    "notes", "is_active", "max_occurrences", "supersedes_rule_id",
)


def _to_row_value(key: str, value):
    if key in ("start_date", "end_date"):
        return format_date(value) if value else None
    if key == "is_active":
        return 1 if value else 0
    return value


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringRule:
        keys = row.keys()
        return RecurringRule(
            id=row["id"],
            user_id=row["user_id"],
            frequency=row["frequency"],
            interval=row["interval"],
            amount=row["amount"],
            currency=row["currency"],
            type=row["type"],
            start_date=parse_date(row["start_date"]),
            category_id=row["category_id"],
            is_active=bool(row["is_active"]),
            end_date=parse_date(row["end_date"]) if row["end_date"] else None,
            merchant_id=row["merchant_id"],
            spread=row["spread"],
            description=row["description"],
            notes=row["notes"],
            max_occurrences=row["max_occurrences"],
            supersedes_rule_id=row["supersedes_rule_id"],
            created_at=row["created_at"],
            category_name=row["category_name"] if "category_name" in keys else "",
            merchant_name=row["merchant_name"] if "merchant_name" in keys else None,
        )

    def _select(self) -> str:
        return """
            SELECT r.*,
                   c.name AS category_name,
                   m.name AS merchant_name
            FROM recurring_rules r
            JOIN categories c ON r.category_id = c.id
            LEFT JOIN merchants m ON r.merchant_id = m.id
        """

    def get_by_user(self, user_id: int) -> list[RecurringRule]:
        with self._db.connection() as conn:
            rows = conn.execute(
                self._select() + " WHERE r.user_id = ? ORDER BY r.created_at DESC, r.id DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self, user_id: int) -> list[RecurringRule]:
        with self._db.connection() as conn:
            rows = conn.execute(
                self._select() + " WHERE r.user_id = ? AND r.is_active = 1 ORDER BY r.id",
                (user_id,),
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, rule_id: int) -> Optional[RecurringRule]:
        with self._db.connection() as conn:
            row = conn.execute(
                self._select() + " WHERE r.id = ?", (rule_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, user_id: int, **fields) -> RecurringRule:
        """Insert a rule. `fields` are RecurringRule attribute names."""
        columns = [k for k in _WRITABLE if k in fields]
        values = [_to_row_value(k, fields[k]) for k in columns]
        placeholders = ", ".join("?" * (len(columns) + 1))
        with self._db.transaction() as conn:
            cursor = conn.execute(
                f"INSERT INTO recurring_rules (user_id, {', '.join(columns)})"
                f" VALUES ({placeholders})",
                [user_id] + values,
            )
        return self.get_by_id(cursor.lastrowid)

    def update(self, rule_id: int, **fields) -> RecurringRule:
        """Overwrite the given columns only; untouched columns keep their values."""
        columns = [k for k in _WRITABLE if k in fields]
        if columns:
            assignments = ", ".join(f"{k}=?" for k in columns)
            with self._db.transaction() as conn:
                conn.execute(
                    f"UPDATE recurring_rules SET {assignments} WHERE id=?",
                    [_to_row_value(k, fields[k]) for k in columns] + [rule_id],
                )
        return self.get_by_id(rule_id)

    def deactivate(self, rule_id: int, end_date) -> RecurringRule:
        return self.update(rule_id, is_active=False, end_date=end_date)

    def delete(self, rule_id: int):
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM recurring_rules WHERE id = ?", (rule_id,))
