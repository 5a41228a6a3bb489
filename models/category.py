from dataclasses import dataclass


@dataclass
class Category:
    id: int
    user_id: int
    name: str
    type: str           # 'EXPENSE' | 'INCOME' | 'BOTH'
    color_hex: str = "#888888"
