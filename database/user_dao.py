from typing import Optional
from database.db_manager import DatabaseManager
from models.user import User


class UserDAO:
    """Read side of the externally managed user directory."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> User:
        return User(id=row["id"], email=row["email"], name=row["name"])

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._db.connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, email: str, name: str = "") -> User:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO users(email, name) VALUES (?, ?)", (email, name)
            )
        return self.get_by_id(cursor.lastrowid)
