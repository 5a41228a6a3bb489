APP_NAME = "Recurring Ledger"
DB_FILE = "ledger.db"
DATE_FORMAT = "%Y-%m-%d"
WIRE_TIME_SUFFIX = "T12:00:00.000Z"   # dates travel as UTC noon

MATCH_TOLERANCE_DAYS = 3
LOOKBACK_MONTHS = 12
LOOKAHEAD_MONTHS = 3

FREQ_DAILY = "DAILY"
FREQ_WEEKLY = "WEEKLY"
FREQ_MONTHLY = "MONTHLY"
FREQ_YEARLY = "YEARLY"
FREQ_ONE_TIME = "ONE_TIME"
FREQUENCIES = [FREQ_DAILY, FREQ_WEEKLY, FREQ_MONTHLY, FREQ_YEARLY, FREQ_ONE_TIME]

TYPE_EXPENSE = "EXPENSE"
TYPE_INCOME = "INCOME"
TRANSACTION_TYPES = [TYPE_EXPENSE, TYPE_INCOME]
CATEGORY_TYPES = [TYPE_EXPENSE, TYPE_INCOME, "BOTH"]

STATUS_PAID = "PAID"
STATUS_SKIPPED = "SKIPPED"
STATUS_OVERDUE = "OVERDUE"
STATUS_DUE = "DUE"
STATUS_UPCOMING = "UPCOMING"
# Surfaced even when they fall before the requested window.
OUTSTANDING_STATUSES = {STATUS_OVERDUE, STATUS_DUE, STATUS_SKIPPED}

UPDATE_MODE_ALL = "all"
UPDATE_MODE_FUTURE = "future"
UPDATE_MODES = [UPDATE_MODE_ALL, UPDATE_MODE_FUTURE]

# Fields that reshape the occurrence timeline itself.
SENSITIVE_FIELDS = ("amount", "currency", "frequency", "interval", "start_date")

DISCARD_MARKER = "marker"
DISCARD_ZERO_TRANSACTION = "zero_transaction"
DISCARD_MODES = [DISCARD_MARKER, DISCARD_ZERO_TRANSACTION]
SKIPPED_PREFIX = "SKIPPED: "
