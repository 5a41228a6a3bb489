"""Wire contracts for the JSON API.

Field names are camelCase on the wire. Dates are date-only values: they are
accepted as YYYY-MM-DD or any ISO datetime (the time part is dropped) and are
always emitted pinned to UTC noon, e.g. 2024-01-31T12:00:00.000Z.
"""
from datetime import date
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel

from utils.date_helpers import parse_wire_date, to_wire

# Offset datetimes keep the calendar day they were written in: a client's
# "2024-01-31T23:00:00-05:00" means Jan 31, not the UTC day (Feb 1).
WireDate = Annotated[
    date,
    BeforeValidator(parse_wire_date),
    PlainSerializer(to_wire, return_type=str, when_used="json"),
]

Frequency = Literal["DAILY", "WEEKLY", "MONTHLY", "YEARLY", "ONE_TIME"]
FlowType = Literal["EXPENSE", "INCOME"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RuleIn(CamelModel):
    frequency: Frequency
    interval: int = Field(1, ge=1)
    amount: float = Field(..., gt=0)
    currency: str = Field(..., min_length=3, max_length=3)
    spread: Optional[float] = Field(None, ge=0)
    type: FlowType
    start_date: WireDate
    end_date: Optional[WireDate] = None
    category_id: int
    merchant_id: Optional[int] = None
    description: str = ""
    notes: str = ""
    is_active: bool = True
    max_occurrences: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def _end_not_before_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

    def to_fields(self) -> dict:
        """Service-level field dict (snake_case, currency upper-cased)."""
        fields = self.model_dump(exclude={"update_mode"})
        fields["currency"] = fields["currency"].upper()
        return fields


class RuleUpdateIn(RuleIn):
    update_mode: Literal["all", "future"] = "all"


class RuleOut(CamelModel):
    id: int
    frequency: str
    interval: int
    amount: float
    currency: str
    spread: Optional[float] = None
    type: str
    start_date: WireDate
    end_date: Optional[WireDate] = None
    category_id: int
    category_name: str = ""
    merchant_id: Optional[int] = None
    merchant_name: Optional[str] = None
    description: str = ""
    notes: str = ""
    is_active: bool
    max_occurrences: Optional[int] = None
    supersedes_rule_id: Optional[int] = None
    created_at: str = ""


class OccurrenceOut(CamelModel):
    date: WireDate
    status: Literal["PAID", "SKIPPED", "OVERDUE", "DUE", "UPCOMING"]
    rule_id: int
    amount: float
    currency: str
    description: str
    category_name: str
    type: str = ""
    merchant_id: Optional[int] = None
    merchant_name: Optional[str] = None
    transaction_id: Optional[int] = None


class TransactionOut(CamelModel):
    id: int
    type: str
    amount: float
    currency: str
    date: WireDate
    category_id: Optional[int] = None
    merchant_id: Optional[int] = None
    description: str = ""
    recurring_rule_id: Optional[int] = None


class ApproveIn(CamelModel):
    rule_id: int
    date: WireDate
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None


class SkipIn(CamelModel):
    rule_id: int
    date: WireDate
    action: Literal["skip", "unskip"] = "skip"
    description: Optional[str] = None


class CategoryIn(CamelModel):
    name: str = Field(..., min_length=1)
    type: Literal["EXPENSE", "INCOME", "BOTH"]
    color_hex: str = "#888888"


class CategoryOut(CamelModel):
    id: int
    name: str
    type: str
    color_hex: str


class MerchantIn(CamelModel):
    name: str = Field(..., min_length=1)


class MerchantOut(CamelModel):
    id: int
    name: str
