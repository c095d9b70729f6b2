"""Store key layout used by the progression engine"""

LEDGER_CATEGORIES = "ledger:categories"
LEDGER_STREAK = "ledger:streak"
LEDGER_LAST_ACTIVE = "ledger:last_active"
TASKS_PREFIX = "tasks:"
WHEEL_SHOWN_PREFIX = "wheel_shown:"


def tasks_key(date_key: str) -> str:
    return f"{TASKS_PREFIX}{date_key}"


def wheel_shown_key(date_key: str) -> str:
    return f"{WHEEL_SHOWN_PREFIX}{date_key}"
