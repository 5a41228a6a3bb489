from database.category_dao import CategoryDAO
from models.category import Category
from utils.constants import CATEGORY_TYPES


class CategoryService:
    def __init__(self, category_dao: CategoryDAO):
        self._dao = category_dao

    def get_all(self, user_id: int) -> list[Category]:
        return self._dao.get_by_user(user_id)

    def create(self, user_id: int, name: str, type_: str, color_hex: str = "#888888") -> Category:
        name = name.strip()
        if not name:
            raise ValueError("Category name cannot be empty.")
        if type_ not in CATEGORY_TYPES:
            raise ValueError(f"Invalid category type: {type_}")
        if self._dao.get_by_name(user_id, name):
            raise ValueError(f"A category named '{name}' already exists.")
        return self._dao.create(user_id, name, type_, color_hex)
