from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class RecurringRule:
    id: int
    user_id: int
    frequency: str          # 'DAILY' | 'WEEKLY' | 'MONTHLY' | 'YEARLY' | 'ONE_TIME'
    interval: int           # every N <frequency>, >= 1
    amount: float
    currency: str           # ISO 4217, e.g. 'USD'
    type: str               # 'EXPENSE' | 'INCOME'
    start_date: date
    category_id: int
    is_active: bool = True
    end_date: Optional[date] = None
    merchant_id: Optional[int] = None
    spread: Optional[float] = None     # percentage, only used for conversion
    description: str = ""
    notes: str = ""
    max_occurrences: Optional[int] = None
    supersedes_rule_id: Optional[int] = None
    created_at: str = ""
    category_name: str = ""
    merchant_name: Optional[str] = None
