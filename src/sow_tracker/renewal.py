from __future__ import annotations

from datetime import date
from enum import Enum

from .dictionaries import RENEWAL_LOOKAHEAD_MONTHS
from .models.contract import Contract
from .working_days import add_months


class ContractStatus(str, Enum):
    active = "ACTIVE"
    renewal_due = "RENEWAL_DUE"
    expired = "EXPIRED"


def is_expired(contract: Contract, as_of: date) -> bool:
    return contract.end_date < as_of


def is_renewal_due(contract: Contract, as_of: date) -> bool:
    """True when the contract ends within the lookahead window and is not expired.

    The window closes on the same day-of-month three months after ``as_of``;
    a single day beyond that is outside it.
    """
    if is_expired(contract, as_of):
        return False
    return contract.end_date <= add_months(as_of, RENEWAL_LOOKAHEAD_MONTHS)


def contract_status(contract: Contract, as_of: date) -> ContractStatus:
    if is_expired(contract, as_of):
        return ContractStatus.expired
    if is_renewal_due(contract, as_of):
        return ContractStatus.renewal_due
    return ContractStatus.active


__all__ = ["ContractStatus", "contract_status", "is_expired", "is_renewal_due"]
