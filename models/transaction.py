from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class Transaction:
    id: int
    user_id: int
    type: str               # 'EXPENSE' | 'INCOME'
    amount: float
    currency: str
    date: date
    category_id: Optional[int]
    description: str = ""
    merchant_id: Optional[int] = None
    recurring_rule_id: Optional[int] = None
    created_at: str = ""
    category_name: str = ""
