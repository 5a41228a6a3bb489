from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.merchant_dao import MerchantDAO
from database.recurring_dao import RecurringDAO
from database.skipped_occurrence_dao import SkippedOccurrenceDAO
from database.transaction_dao import TransactionDAO
from database.user_dao import UserDAO
from services.approval_service import ApprovalService
from services.occurrence_service import OccurrenceService
from services.recurring_service import RecurringService


class FixedClock:
    def __init__(self, when: datetime):
        self.when = when

    def now(self) -> datetime:
        return self.when


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def daos(db):
    return SimpleNamespace(
        users=UserDAO(db),
        categories=CategoryDAO(db),
        merchants=MerchantDAO(db),
        rules=RecurringDAO(db),
        transactions=TransactionDAO(db),
        skips=SkippedOccurrenceDAO(db),
    )


@pytest.fixture
def user(daos):
    return daos.users.create("alice@example.com", "Alice")


@pytest.fixture
def other_user(daos):
    return daos.users.create("bob@example.com", "Bob")


@pytest.fixture
def category(daos, user):
    return daos.categories.create(user.id, "Housing", "EXPENSE")


@pytest.fixture
def merchant(daos, user):
    return daos.merchants.create(user.id, "Landlord LLC")


@pytest.fixture
def rule_service(db, daos, clock):
    return RecurringService(db, daos.rules, daos.categories, daos.merchants, clock=clock)


@pytest.fixture
def occurrence_service(daos, clock):
    return OccurrenceService(daos.rules, daos.transactions, daos.skips, clock=clock)


@pytest.fixture
def approval_service(rule_service, daos):
    return ApprovalService(rule_service, daos.transactions, daos.skips)


@pytest.fixture
def rent_rule(rule_service, user, category):
    return rule_service.create(
        user_id=user.id,
        frequency="MONTHLY",
        amount=100.0,
        currency="USD",
        type_="EXPENSE",
        start_date=date(2024, 1, 1),
        category_id=category.id,
        description="Rent",
    )
