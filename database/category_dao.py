from typing import Optional
from database.db_manager import DatabaseManager
from models.category import Category


class CategoryDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            type=row["type"],
            color_hex=row["color_hex"],
        )

    def get_by_user(self, user_id: int) -> list[Category]:
        with self._db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM categories WHERE user_id = ? ORDER BY name", (user_id,)
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, category_id: int) -> Optional[Category]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE id = ?", (category_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_name(self, user_id: int, name: str) -> Optional[Category]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE user_id = ? AND lower(name) = lower(?)",
                (user_id, name),
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, user_id: int, name: str, type_: str, color_hex: str = "#888888") -> Category:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO categories(user_id, name, type, color_hex) VALUES (?, ?, ?, ?)",
                (user_id, name, type_, color_hex),
            )
        return self.get_by_id(cursor.lastrowid)
