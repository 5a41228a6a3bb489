from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class RecurringOccurrence:
    """One expected event of a rule on a calendar day. Derived, never stored."""
    date: date
    status: str             # 'PAID' | 'SKIPPED' | 'OVERDUE' | 'DUE' | 'UPCOMING'
    rule_id: int
    amount: float
    currency: str
    description: str
    category_name: str
    type: str = ""
    merchant_id: Optional[int] = None
    merchant_name: Optional[str] = None
    transaction_id: Optional[int] = None
