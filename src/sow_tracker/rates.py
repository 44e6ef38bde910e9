from __future__ import annotations

from typing import Iterable

from .models.contract import BillingRate


def resolve_rate(rates: Iterable[BillingRate], target_year: int) -> float:
    """Return the most recent rate at or before ``target_year``.

    A contract keeps billing at its latest known rate when it rolls into a
    year with no explicit entry. Returns 0.0 when every entry is later than
    the target year (or there are none), so totals degrade to zero instead
    of failing.
    """
    applicable = [rate for rate in rates if rate.year <= target_year]
    if not applicable:
        return 0.0
    return max(applicable, key=lambda rate: rate.year).rate_per_resource


__all__ = ["resolve_rate"]
