from dataclasses import dataclass
from datetime import date


@dataclass
class SkippedOccurrence:
    id: int
    rule_id: int
    date: date
    created_at: str = ""
