from dataclasses import dataclass


@dataclass
class Merchant:
    id: int
    user_id: int
    name: str
