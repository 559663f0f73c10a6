# carbon_model/finance/issuance.py
from __future__ import annotations

from typing import List, Sequence


def issued_credits(credits_generated: Sequence[float], issuance_flag: Sequence[int]) -> List[float]:
    """
    Credits issued per year.

    Each flagged year issues the whole remaining inventory (generated so far
    minus issued so far), clamped to [0, remaining]. Unflagged years issue
    nothing, so cumulative issuance never exceeds cumulative generation.
    """
    issued: List[float] = []
    cum_generated = 0.0
    cum_issued = 0.0
    for gen, flag in zip(credits_generated, issuance_flag):
        cum_generated += float(gen)
        remaining = cum_generated - cum_issued
        q = min(max(0.0, remaining * flag), max(0.0, remaining))
        issued.append(q)
        cum_issued += q
    return issued


__all__ = ["issued_credits"]
