"""Storage boundary - translate store field names into domain records"""

import json
from typing import Any, Dict, Mapping, Optional

from loanbook_engine.domain.exceptions import InvalidLoanRecordError
from loanbook_engine.domain.models import RISK_LEVELS, LoanRecord
from loanbook_engine.domain.payments import payment_slots_from_fields
from loanbook_engine.infrastructure.database.models import LoanBookRecord


def _risk_level(value: Any) -> Optional[str]:
    return value if value in RISK_LEVELS else None


def _risk_factors(value: Any) -> Optional[Dict[str, Any]]:
    # Older rows stored the factors as a JSON string
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return None
    return value if isinstance(value, dict) else None


def loan_record_from_fields(fields: Mapping[str, Any]) -> LoanRecord:
    """
    Build a LoanRecord from a flat mapping of store columns.

    Payment slots are resolved by position via their legacy or date-based
    column names, or taken from an explicit `payment_slots` sequence.

    Raises:
        InvalidLoanRecordError: On a missing id/loan_date or an unreadable timestamp
    """
    try:
        loan_id = fields["id"]
        loan_date = fields["loan_date"]
    except KeyError as e:
        raise InvalidLoanRecordError(f"Loan record missing required field {e}") from e

    slots = fields.get("payment_slots")
    if slots is None:
        slots = payment_slots_from_fields(fields)

    return LoanRecord(
        id=loan_id,
        loan_date=loan_date,
        created_at=fields.get("created_at") or loan_date,
        updated_at=fields.get("updated_at"),
        amount_returnable=fields.get("amount_returnable"),
        remaining_balance=fields.get("remaining_balance"),
        status=fields.get("status") or "",
        payment_slots=slots,
        risk_score=fields.get("risk_score"),
        default_probability=fields.get("default_probability"),
        risk_level=_risk_level(fields.get("risk_level")),
        risk_factors=_risk_factors(fields.get("risk_factors")),
        client_name=fields.get("client_name"),
        payment_mode=fields.get("payment_mode"),
        user_id=fields.get("user_id"),
    )


def loan_record_from_row(row: LoanBookRecord) -> LoanRecord:
    """Map an ORM row through the same column-name adapter"""
    fields = {column.key: getattr(row, column.key) for column in LoanBookRecord.__table__.columns}
    return loan_record_from_fields(fields)
