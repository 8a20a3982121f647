import math
from datetime import datetime, timedelta
from decimal import Decimal

ONE_DAY = timedelta(days=1)
CENTS = Decimal("0.01")


def overdue_days(due_date: datetime | None, now: datetime) -> int:
    """Whole days past due, a started day counting as a full one."""
    if due_date is None or now <= due_date:
        return 0
    return math.ceil((now - due_date) / ONE_DAY)


def fine(days_overdue: int, per_diem) -> Decimal:
    if days_overdue <= 0:
        return Decimal("0.00")
    return (Decimal(str(per_diem)) * Decimal(days_overdue)).quantize(CENTS)
