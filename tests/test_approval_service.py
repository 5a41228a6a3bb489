from datetime import date

import pytest

from services.approval_service import ApprovalService
from services.errors import NotFoundError

WINDOW = (date(2024, 1, 1), date(2024, 4, 1))


def _status_on(occurrence_service, user, on):
    matches = [
        o for o in occurrence_service.get_occurrences(user.id, *WINDOW) if o.date == on
    ]
    assert len(matches) == 1
    return matches[0]


def test_approve_copies_rule_fields(approval_service, rent_rule, user):
    tx = approval_service.approve(user.id, rent_rule.id, date(2024, 2, 1))

    assert tx.amount == 100.0
    assert tx.currency == "USD"
    assert tx.type == "EXPENSE"
    assert tx.category_id == rent_rule.category_id
    assert tx.description == "Rent"
    assert tx.date == date(2024, 2, 1)
    assert tx.recurring_rule_id == rent_rule.id


def test_approve_overrides(approval_service, rent_rule, user):
    tx = approval_service.approve(
        user.id, rent_rule.id, date(2024, 2, 3), amount=110.5, description="Rent + late fee",
    )
    assert tx.amount == 110.5
    assert tx.description == "Rent + late fee"


def test_approve_falls_back_to_frequency_label(approval_service, rule_service, user, category):
    rule = rule_service.create(
        user_id=user.id, frequency="WEEKLY", amount=9.99, currency="EUR",
        type_="EXPENSE", start_date=date(2024, 1, 1), category_id=category.id,
    )
    tx = approval_service.approve(user.id, rule.id, date(2024, 1, 8))
    assert tx.description == "Recurring: WEEKLY"


def test_approve_rejects_non_positive_override(approval_service, rent_rule, user):
    with pytest.raises(ValueError):
        approval_service.approve(user.id, rent_rule.id, date(2024, 2, 1), amount=-5)


def test_approve_other_users_rule(approval_service, rent_rule, other_user):
    with pytest.raises(NotFoundError):
        approval_service.approve(other_user.id, rent_rule.id, date(2024, 2, 1))


def test_approved_occurrence_is_paid(approval_service, occurrence_service, rent_rule, user):
    tx = approval_service.approve(user.id, rent_rule.id, date(2024, 2, 2))

    occurrence = _status_on(occurrence_service, user, date(2024, 2, 1))

    assert occurrence.status == "PAID"
    assert occurrence.transaction_id == tx.id


def test_double_approval_creates_two_transactions(
    approval_service, occurrence_service, daos, rent_rule, user
):
    first = approval_service.approve(user.id, rent_rule.id, date(2024, 2, 1))
    approval_service.approve(user.id, rent_rule.id, date(2024, 2, 1))

    assert len(daos.transactions.get_by_rule_ids([rent_rule.id])[rent_rule.id]) == 2
    occurrence = _status_on(occurrence_service, user, date(2024, 2, 1))
    assert occurrence.transaction_id == first.id


def test_discard_is_idempotent(approval_service, occurrence_service, daos, rent_rule, user):
    approval_service.discard(user.id, rent_rule.id, date(2024, 2, 1))
    approval_service.discard(user.id, rent_rule.id, date(2024, 2, 1))

    assert len(daos.skips.get_by_rule_ids([rent_rule.id]).get(rent_rule.id, [])) == 1
    occurrence = _status_on(occurrence_service, user, date(2024, 2, 1))
    assert occurrence.status == "SKIPPED"


def test_unskip_restores_overdue(approval_service, occurrence_service, rent_rule, user):
    approval_service.discard(user.id, rent_rule.id, date(2024, 2, 1))

    assert approval_service.unskip(user.id, rent_rule.id, date(2024, 2, 1))
    assert not approval_service.unskip(user.id, rent_rule.id, date(2024, 2, 1))
    assert _status_on(occurrence_service, user, date(2024, 2, 1)).status == "OVERDUE"


def test_zero_transaction_discard_mode(rule_service, occurrence_service, daos, rent_rule, user):
    service = ApprovalService(
        rule_service, daos.transactions, daos.skips, discard_mode="zero_transaction",
    )

    tx = service.discard(user.id, rent_rule.id, date(2024, 2, 1))

    assert tx.amount == 0
    assert tx.description == "SKIPPED: Rent"
    assert daos.skips.get_by_rule_ids([rent_rule.id]).get(rent_rule.id, []) == []
    assert _status_on(occurrence_service, user, date(2024, 2, 1)).status == "PAID"


def test_invalid_discard_mode(rule_service, daos):
    with pytest.raises(ValueError):
        ApprovalService(rule_service, daos.transactions, daos.skips, discard_mode="delete")
