from datetime import date
from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.date_helpers import parse_date, format_date


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            amount=row["amount"],
            currency=row["currency"],
            date=parse_date(row["date"]),
            category_id=row["category_id"],
            description=row["description"],
            merchant_id=row["merchant_id"],
            recurring_rule_id=row["recurring_rule_id"],
            created_at=row["created_at"],
            category_name=row["category_name"] if "category_name" in row.keys() else "",
        )

    def _select(self) -> str:
        return """
            SELECT t.*,
                   COALESCE(c.name, '') AS category_name
            FROM transactions t
            LEFT JOIN categories c ON t.category_id = c.id
        """

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        with self._db.connection() as conn:
            row = conn.execute(
                self._select() + " WHERE t.id = ?", (tx_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_rule_ids(self, rule_ids: list[int]) -> dict[int, list[Transaction]]:
        """Fetch all transactions stamped with any of rule_ids in a single query.
        Returns {rule_id: [tx, ...]} ordered by date, then id."""
        if not rule_ids:
            return {}
        placeholders = ",".join("?" * len(rule_ids))
        with self._db.connection() as conn:
            rows = conn.execute(
                self._select()
                + f" WHERE t.recurring_rule_id IN ({placeholders}) ORDER BY t.date ASC, t.id ASC",
                list(rule_ids),
            ).fetchall()
        result: dict[int, list[Transaction]] = {}
        for row in rows:
            tx = self._row_to_model(row)
            result.setdefault(tx.recurring_rule_id, []).append(tx)
        return result

    def create(
        self,
        user_id: int,
        type_: str,
        amount: float,
        currency: str,
        date: date,
        description: str = "",
        category_id: int | None = None,
        merchant_id: int | None = None,
        recurring_rule_id: int | None = None,
    ) -> Transaction:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """INSERT INTO transactions
                   (user_id, type, amount, currency, category_id, merchant_id,
                    description, date, recurring_rule_id)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    user_id, type_, amount, currency, category_id, merchant_id,
                    description, format_date(date), recurring_rule_id,
                ),
            )
        return self.get_by_id(cursor.lastrowid)
