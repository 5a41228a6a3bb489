import logging
from datetime import date, timedelta
from database.recurring_dao import RecurringDAO
from database.skipped_occurrence_dao import SkippedOccurrenceDAO
from database.transaction_dao import TransactionDAO
from models.occurrence import RecurringOccurrence
from models.recurring_rule import RecurringRule
from models.skipped_occurrence import SkippedOccurrence
from models.transaction import Transaction
from utils.constants import (
    FREQUENCIES, FREQ_ONE_TIME, MATCH_TOLERANCE_DAYS, LOOKBACK_MONTHS, LOOKAHEAD_MONTHS,
    STATUS_PAID, STATUS_SKIPPED, STATUS_OVERDUE, STATUS_DUE, STATUS_UPCOMING,
    OUTSTANDING_STATUSES,
)
from utils.date_helpers import add_months, advance, today

LOGGER = logging.getLogger("recurring_ledger.occurrences")


def find_match(
    candidate: date,
    rule_transactions: list[Transaction],
    tolerance_days: int = MATCH_TOLERANCE_DAYS,
) -> Transaction | None:
    """Return the first transaction dated within ±tolerance_days of candidate."""
    for tx in rule_transactions:
        if abs((tx.date - candidate).days) <= tolerance_days:
            return tx
    return None


def is_skipped(candidate: date, rule_skips: list[SkippedOccurrence]) -> bool:
    return any(skip.date == candidate for skip in rule_skips)


def classify(
    candidate: date,
    ref: date,
    rule_transactions: list[Transaction],
    rule_skips: list[SkippedOccurrence],
    tolerance_days: int = MATCH_TOLERANCE_DAYS,
) -> tuple[str, Transaction | None]:
    """Return (status, matched transaction) for one candidate date.

    A matching transaction wins over a skip marker.
    """
    match = find_match(candidate, rule_transactions, tolerance_days)
    if match is not None:
        return STATUS_PAID, match
    if is_skipped(candidate, rule_skips):
        return STATUS_SKIPPED, None
    if candidate < ref:
        return STATUS_OVERDUE, None
    if candidate == ref:
        return STATUS_DUE, None
    return STATUS_UPCOMING, None


def candidate_dates(rule: RecurringRule, until: date):
    """Yield the rule's scheduled dates from start_date up to `until` inclusive.

    Each date is one period after the previous one, so a clamped month-end
    date carries forward (Jan 31, Feb 29, Mar 29). An unknown frequency
    yields start_date only.
    """
    count = 0
    current = rule.start_date
    while current <= until:
        if rule.max_occurrences is not None and count >= rule.max_occurrences:
            return
        yield current
        if rule.frequency not in FREQUENCIES:
            LOGGER.warning(
                "Rule %s has unknown frequency %r; expansion stopped",
                rule.id, rule.frequency,
            )
            return
        if rule.frequency == FREQ_ONE_TIME:
            return
        count += 1
        current = advance(current, rule.frequency, rule.interval)


def _to_occurrence(rule: RecurringRule, on: date, status: str,
                   match: Transaction | None) -> RecurringOccurrence:
    return RecurringOccurrence(
        date=on,
        status=status,
        rule_id=rule.id,
        amount=rule.amount,
        currency=rule.currency,
        description=rule.description or f"Recurring {rule.frequency}",
        category_name=rule.category_name,
        type=rule.type,
        merchant_id=rule.merchant_id,
        merchant_name=rule.merchant_name,
        transaction_id=match.id if match else None,
    )


def expand_rule(
    rule: RecurringRule,
    range_start: date,
    range_end: date,
    ref: date,
    rule_transactions: list[Transaction],
    rule_skips: list[SkippedOccurrence],
    tolerance_days: int = MATCH_TOLERANCE_DAYS,
) -> list[RecurringOccurrence]:
    if not rule.is_active:
        return []
    effective_end = min(rule.end_date, range_end) if rule.end_date else range_end
    window_floor = range_start - timedelta(days=1)

    result = []
    for on in candidate_dates(rule, effective_end):
        status, match = classify(on, ref, rule_transactions, rule_skips, tolerance_days)
        if on >= window_floor or status in OUTSTANDING_STATUSES:
            result.append(_to_occurrence(rule, on, status, match))
    return result


def expand(
    rules: list[RecurringRule],
    range_start: date,
    range_end: date,
    transactions: dict[int, list[Transaction]],
    skips: dict[int, list[SkippedOccurrence]],
    ref: date,
    tolerance_days: int = MATCH_TOLERANCE_DAYS,
) -> list[RecurringOccurrence]:
    """Expand rules into one timeline sorted by date.

    transactions and skips are pre-fetched and keyed by rule id; ref is
    "today" and is shared by every rule in the call.
    """
    occurrences: list[RecurringOccurrence] = []
    for rule in rules:
        occurrences += expand_rule(
            rule, range_start, range_end, ref,
            transactions.get(rule.id, []), skips.get(rule.id, []),
            tolerance_days,
        )
    return sorted(occurrences, key=lambda o: o.date)


class OccurrenceService:
    def __init__(
        self,
        recurring_dao: RecurringDAO,
        tx_dao: TransactionDAO,
        skip_dao: SkippedOccurrenceDAO,
        clock=None,
        tolerance_days: int = MATCH_TOLERANCE_DAYS,
        lookback_months: int = LOOKBACK_MONTHS,
        lookahead_months: int = LOOKAHEAD_MONTHS,
    ):
        self._rules = recurring_dao
        self._tx_dao = tx_dao
        self._skips = skip_dao
        self._clock = clock
        self._tolerance = tolerance_days
        self._lookback = lookback_months
        self._lookahead = lookahead_months

    def default_window(self, ref: date | None = None) -> tuple[date, date]:
        ref = ref or today(self._clock)
        return add_months(ref, -self._lookback), add_months(ref, self._lookahead)

    def get_occurrences(
        self,
        user_id: int,
        range_start: date | None = None,
        range_end: date | None = None,
    ) -> list[RecurringOccurrence]:
        """All occurrences of the user's active rules within the window
        (default: lookback months ago through lookahead months ahead)."""
        ref = today(self._clock)
        default_start, default_end = self.default_window(ref)
        return self.expand_rules(
            self._rules.get_active(user_id),
            range_start or default_start,
            range_end or default_end,
            ref,
        )

    def expand_rules(
        self,
        rules: list[RecurringRule],
        range_start: date,
        range_end: date,
        ref: date | None = None,
    ) -> list[RecurringOccurrence]:
        """Batch-load transactions and skips for `rules`, then expand.

        `ref` is the "today" used for classification; read from the clock
        when not given.
        """
        if range_start > range_end:
            raise ValueError("Range start must not be after range end.")
        rule_ids = [r.id for r in rules]
        transactions = self._tx_dao.get_by_rule_ids(rule_ids)
        skips = self._skips.get_by_rule_ids(rule_ids)
        result = expand(
            rules, range_start, range_end, transactions, skips,
            ref or today(self._clock), self._tolerance,
        )
        LOGGER.debug(
            "Expanded %d rules over %s..%s into %d occurrences",
            len(rules), range_start, range_end, len(result),
        )
        return result
