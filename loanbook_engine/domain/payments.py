"""Payment slot helpers shared by reconciliation and risk scoring"""

import math
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from loanbook_engine.domain.exceptions import InvalidLoanRecordError

PAYMENT_SLOT_COUNT = 12

PaymentSlots = Tuple[Optional[float], ...]

# Storage-level names for each position. The legacy table mixes casing
# (amount_paid_5 vs Amount_paid_6 vs Amount_Paid_8); the live table labels the
# same positions with collection dates. Position is the only reliable key.
LEGACY_SLOT_COLUMNS = (
    "amount_paid_1",
    "amount_paid_2",
    "amount_paid_3",
    "amount_paid_4",
    "amount_paid_5",
    "Amount_paid_6",
    "Amount_paid_7",
    "Amount_Paid_8",
    "Amount_Paid_9",
    "Amount_Paid_10",
    "Amount_Paid_11",
    "Amount_Paid_12",
)

DATE_SLOT_COLUMNS = (
    "30-05-2025",
    "31-05-2025",
    "02-06-2025",
    "04-06-2025",
    "05-06-2025",
    "07-06-2025",
    "10-06-2025",
    "11-06-2025",
    "12-06-2025",
    "13-06-2025",
    "14-06-2025",
    "16-06-2025",
)


def as_amount(value: Any) -> float:
    """Coerce a stored numeric field to float; missing or unreadable values count as 0"""
    if value is None:
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def _optional_amount(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return amount if math.isfinite(amount) else None


def normalize_payment_slots(values: Optional[Iterable[Any]]) -> PaymentSlots:
    """
    Build the fixed twelve-position slot tuple.

    Short input is padded with empty slots; more than twelve values is a
    structural error rather than a numeric one.
    """
    slots = [_optional_amount(v) for v in (values or ())]
    if len(slots) > PAYMENT_SLOT_COUNT:
        raise InvalidLoanRecordError(
            f"Expected at most {PAYMENT_SLOT_COUNT} payment slots, got {len(slots)}"
        )
    slots.extend([None] * (PAYMENT_SLOT_COUNT - len(slots)))
    return tuple(slots)


def payment_slots_from_fields(fields: Mapping[str, Any]) -> PaymentSlots:
    """
    Translate storage field names into the ordered slot tuple.

    Matches each position by its legacy column name (case-insensitive) or by
    its date-based column name. Every other field is ignored.
    """
    by_name = {str(key).lower(): value for key, value in fields.items()}

    values = []
    for legacy_name, date_name in zip(LEGACY_SLOT_COLUMNS, DATE_SLOT_COLUMNS):
        value = by_name.get(legacy_name.lower())
        if value is None:
            value = by_name.get(date_name)
        values.append(value)

    return normalize_payment_slots(values)


def slot_amounts(slots: PaymentSlots) -> List[float]:
    """Slot values in position order with empty slots as 0"""
    return [as_amount(amount) for amount in slots]


def sum_payments(slots: PaymentSlots) -> float:
    """Literal sum of all slots; negative amounts are included, not stripped"""
    return sum(slot_amounts(slots))


def active_slot_positions(slots: PaymentSlots) -> List[int]:
    """1-based positions holding a strictly positive amount"""
    return [position for position, amount in enumerate(slot_amounts(slots), start=1) if amount > 0]


def positive_amounts(slots: PaymentSlots) -> List[float]:
    """Strictly positive amounts in slot order"""
    return [amount for amount in slot_amounts(slots) if amount > 0]


def negative_slot_positions(slots: PaymentSlots) -> List[int]:
    """1-based positions holding a negative amount"""
    return [position for position, amount in enumerate(slot_amounts(slots), start=1) if amount < 0]
