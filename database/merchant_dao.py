from typing import Optional
from database.db_manager import DatabaseManager
from models.merchant import Merchant


class MerchantDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Merchant:
        return Merchant(id=row["id"], user_id=row["user_id"], name=row["name"])

    def get_by_user(self, user_id: int) -> list[Merchant]:
        with self._db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM merchants WHERE user_id = ? ORDER BY name", (user_id,)
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, merchant_id: int) -> Optional[Merchant]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM merchants WHERE id = ?", (merchant_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_name(self, user_id: int, name: str) -> Optional[Merchant]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM merchants WHERE user_id = ? AND lower(name) = lower(?)",
                (user_id, name),
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, user_id: int, name: str) -> Merchant:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO merchants(user_id, name) VALUES (?, ?)", (user_id, name)
            )
        return self.get_by_id(cursor.lastrowid)
