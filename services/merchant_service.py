from database.merchant_dao import MerchantDAO
from models.merchant import Merchant


class MerchantService:
    def __init__(self, merchant_dao: MerchantDAO):
        self._dao = merchant_dao

    def get_all(self, user_id: int) -> list[Merchant]:
        return self._dao.get_by_user(user_id)

    def create(self, user_id: int, name: str) -> Merchant:
        name = name.strip()
        if not name:
            raise ValueError("Merchant name cannot be empty.")
        if self._dao.get_by_name(user_id, name):
            raise ValueError(f"A merchant named '{name}' already exists.")
        return self._dao.create(user_id, name)
