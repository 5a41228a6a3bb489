import logging
from datetime import date
from database.skipped_occurrence_dao import SkippedOccurrenceDAO
from database.transaction_dao import TransactionDAO
from models.transaction import Transaction
from services.recurring_service import RecurringService
from utils.constants import (
    DISCARD_MARKER, DISCARD_ZERO_TRANSACTION, DISCARD_MODES, SKIPPED_PREFIX,
)

LOGGER = logging.getLogger("recurring_ledger.approvals")


class ApprovalService:
    """Turns a single occurrence into a transaction, or marks it skipped."""

    def __init__(
        self,
        recurring_service: RecurringService,
        tx_dao: TransactionDAO,
        skip_dao: SkippedOccurrenceDAO,
        discard_mode: str = DISCARD_MARKER,
    ):
        if discard_mode not in DISCARD_MODES:
            raise ValueError(f"Invalid discard mode: {discard_mode}")
        self._rules = recurring_service
        self._tx_dao = tx_dao
        self._skips = skip_dao
        self._discard_mode = discard_mode

    def approve(
        self,
        user_id: int,
        rule_id: int,
        on: date,
        amount: float | None = None,
        description: str | None = None,
    ) -> Transaction:
        """Record the occurrence as a real transaction linked to its rule.

        Approving the same occurrence twice records two transactions; both
        fall inside the match window and the earlier one keeps matching.
        """
        if amount is not None and amount <= 0:
            raise ValueError("Amount must be positive.")
        rule = self._rules.get_by_id(user_id, rule_id)
        tx = self._tx_dao.create(
            user_id=user_id,
            type_=rule.type,
            amount=amount or rule.amount,
            currency=rule.currency,
            date=on,
            description=description or rule.description or f"Recurring: {rule.frequency}",
            category_id=rule.category_id,
            merchant_id=rule.merchant_id,
            recurring_rule_id=rule.id,
        )
        LOGGER.info("Rule %s occurrence %s approved as transaction %s", rule.id, on, tx.id)
        return tx

    def discard(
        self, user_id: int, rule_id: int, on: date, description: str | None = None
    ) -> Transaction | None:
        """Mark the occurrence as deliberately not happening.

        With the marker mode (default) a skip marker is upserted, so repeated
        calls leave exactly one. The zero_transaction mode records a 0-amount
        transaction instead and returns it.
        """
        rule = self._rules.get_by_id(user_id, rule_id)
        if self._discard_mode == DISCARD_ZERO_TRANSACTION:
            label = description or rule.description or f"Recurring: {rule.frequency}"
            tx = self._tx_dao.create(
                user_id=user_id,
                type_=rule.type,
                amount=0,
                currency=rule.currency,
                date=on,
                description=SKIPPED_PREFIX + label,
                category_id=rule.category_id,
                merchant_id=rule.merchant_id,
                recurring_rule_id=rule.id,
            )
            LOGGER.info("Rule %s occurrence %s discarded as transaction %s", rule.id, on, tx.id)
            return tx

        self._skips.upsert(rule.id, on)
        LOGGER.info("Rule %s occurrence %s skipped", rule.id, on)
        return None

    def unskip(self, user_id: int, rule_id: int, on: date) -> bool:
        """Remove a skip marker. Returns False when there was none."""
        rule = self._rules.get_by_id(user_id, rule_id)
        removed = self._skips.delete(rule.id, on) > 0
        LOGGER.info("Rule %s occurrence %s unskipped (removed=%s)", rule.id, on, removed)
        return removed
