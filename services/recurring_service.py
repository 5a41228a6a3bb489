import logging
from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.merchant_dao import MerchantDAO
from database.recurring_dao import RecurringDAO
from models.recurring_rule import RecurringRule
from services.errors import NotFoundError, OwnershipError
from utils.constants import (
    FREQUENCIES, TRANSACTION_TYPES, SENSITIVE_FIELDS,
    UPDATE_MODES, UPDATE_MODE_ALL, UPDATE_MODE_FUTURE,
)
from utils.date_helpers import today

LOGGER = logging.getLogger("recurring_ledger.rules")

EDITABLE_FIELDS = (
    "frequency", "interval", "amount", "currency", "spread", "type",
    "start_date", "end_date", "category_id", "merchant_id", "description",
    "notes", "is_active", "max_occurrences",
)


class RecurringService:
    def __init__(
        self,
        db: DatabaseManager,
        recurring_dao: RecurringDAO,
        category_dao: CategoryDAO,
        merchant_dao: MerchantDAO,
        clock=None,
        require_merchant: bool = False,
    ):
        self._db = db
        self._dao = recurring_dao
        self._categories = category_dao
        self._merchants = merchant_dao
        self._clock = clock
        self._require_merchant = require_merchant

    def get_all(self, user_id: int) -> list[RecurringRule]:
        return self._dao.get_by_user(user_id)

    def get_active(self, user_id: int) -> list[RecurringRule]:
        return self._dao.get_active(user_id)

    def get_by_id(self, user_id: int, rule_id: int) -> RecurringRule:
        rule = self._dao.get_by_id(rule_id)
        if rule is None or rule.user_id != user_id:
            raise NotFoundError("Rule not found or unauthorized")
        return rule

    def create(
        self,
        user_id: int,
        frequency: str,
        amount: float,
        currency: str,
        type_: str,
        start_date,
        category_id: int,
        interval: int = 1,
        end_date=None,
        merchant_id: int | None = None,
        spread: float | None = None,
        description: str = "",
        notes: str = "",
        is_active: bool = True,
        max_occurrences: int | None = None,
    ) -> RecurringRule:
        fields = dict(
            frequency=frequency, interval=interval, amount=amount,
            currency=currency.upper(), spread=spread, type=type_,
            start_date=start_date, end_date=end_date, category_id=category_id,
            merchant_id=merchant_id, description=description or "",
            notes=notes or "", is_active=is_active, max_occurrences=max_occurrences,
        )
        self._validate(fields)
        self._check_ownership(user_id, category_id, merchant_id)
        rule = self._dao.create(user_id, **fields)
        LOGGER.info("Rule %s created for user %s (%s x%s)", rule.id, user_id, frequency, interval)
        return rule

    def is_sensitive_change(self, rule: RecurringRule, fields: dict) -> bool:
        """True when fields would reshape the rule's occurrence timeline."""
        return any(
            key in fields and fields[key] != getattr(rule, key)
            for key in SENSITIVE_FIELDS
        )

    def update(
        self,
        user_id: int,
        rule_id: int,
        fields: dict,
        mode: str = UPDATE_MODE_ALL,
    ) -> RecurringRule:
        """Apply `fields` to a rule.

        mode "all" rewrites the rule in place, so every past and future
        occurrence reflects the change. mode "future" ends the rule today,
        deactivates it and forks a new rule starting today that carries the
        change; both writes happen in one atomic unit. Returns the rule that
        now carries the change (the new one for "future").
        """
        if mode not in UPDATE_MODES:
            raise ValueError(f"Invalid update mode: {mode}")
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown rule fields: {', '.join(sorted(unknown))}")

        rule = self.get_by_id(user_id, rule_id)
        merged = {key: getattr(rule, key) for key in EDITABLE_FIELDS}
        merged.update(fields)
        if merged.get("currency"):
            merged["currency"] = merged["currency"].upper()

        if merged["category_id"] != rule.category_id or merged["merchant_id"] != rule.merchant_id:
            self._check_ownership(user_id, merged["category_id"], merged["merchant_id"])
        elif self._require_merchant and merged["merchant_id"] is None:
            raise ValueError("Merchant is required.")

        if mode == UPDATE_MODE_FUTURE:
            return self._fork(rule, merged)

        self._validate(merged)
        updated = self._dao.update(rule.id, **merged)
        LOGGER.info("Rule %s updated in place (fields: %s)", rule.id, ", ".join(sorted(fields)))
        return updated

    def _fork(self, rule: RecurringRule, merged: dict) -> RecurringRule:
        ref = today(self._clock)
        if rule.start_date <= ref:
            merged["start_date"] = ref
        self._validate(merged)

        with self._db.transaction():
            # end_date may not precede start_date, so a not-yet-started rule
            # is closed on its own start date.
            self._dao.deactivate(rule.id, max(ref, rule.start_date))
            new_rule = self._dao.create(
                rule.user_id, supersedes_rule_id=rule.id, **merged
            )
        LOGGER.info("Rule %s forked into rule %s from %s", rule.id, new_rule.id, merged["start_date"])
        return new_rule

    def delete(self, user_id: int, rule_id: int):
        """Remove the rule. Materialized transactions keep existing, unlinked."""
        rule = self.get_by_id(user_id, rule_id)
        self._dao.delete(rule.id)
        LOGGER.info("Rule %s deleted", rule.id)

    def history(self, user_id: int, rule_id: int) -> list[RecurringRule]:
        """The rule and the rules it superseded, oldest first."""
        chain = [self.get_by_id(user_id, rule_id)]
        seen = {rule_id}
        while chain[-1].supersedes_rule_id and chain[-1].supersedes_rule_id not in seen:
            previous = self._dao.get_by_id(chain[-1].supersedes_rule_id)
            if previous is None or previous.user_id != user_id:
                break
            seen.add(previous.id)
            chain.append(previous)
        return list(reversed(chain))

    def _check_ownership(self, user_id: int, category_id: int, merchant_id: int | None):
        category = self._categories.get_by_id(category_id)
        if category is None or category.user_id != user_id:
            raise OwnershipError("Category not found or unauthorized")
        if merchant_id is None:
            if self._require_merchant:
                raise ValueError("Merchant is required.")
            return
        merchant = self._merchants.get_by_id(merchant_id)
        if merchant is None or merchant.user_id != user_id:
            raise OwnershipError("Merchant not found or unauthorized")

    def _validate(self, fields: dict):
        if fields["frequency"] not in FREQUENCIES:
            raise ValueError("Invalid frequency.")
        if fields["type"] not in TRANSACTION_TYPES:
            raise ValueError("Type must be INCOME or EXPENSE.")
        if not isinstance(fields["interval"], int) or fields["interval"] < 1:
            raise ValueError("Interval must be a positive integer.")
        if fields["amount"] is None or fields["amount"] <= 0:
            raise ValueError("Amount must be positive.")
        if not fields["currency"] or len(fields["currency"]) != 3:
            raise ValueError("Currency must be a 3-letter code.")
        if fields.get("spread") is not None and fields["spread"] < 0:
            raise ValueError("Spread must be 0 or greater.")
        if fields["start_date"] is None:
            raise ValueError("Invalid start date.")
        if fields.get("end_date") and fields["end_date"] < fields["start_date"]:
            raise ValueError("End date must not be before start date.")
        if fields.get("max_occurrences") is not None and fields["max_occurrences"] < 1:
            raise ValueError("Max occurrences must be at least 1.")
