# carbon_model/finance/revenue.py
"""
Spot vs pre-purchase revenue split.

A single pre-purchase agreement pays one lump sum in its year and entitles
the buyer to `purchase_share` of every year's issuance. The price per
delivered credit is locked once: lump sum / total entitlement over the
horizon. Undelivered value sits in unearned revenue on the balance sheet.
"""
from __future__ import annotations

import logging

from carbon_model.finance.issuance import issued_credits
from carbon_model.types import CreditAllocation, ModelInputs

logger = logging.getLogger("carbon_model.finance.revenue")


def allocate(inputs: ModelInputs) -> CreditAllocation:
    """Compute issuance and the revenue split once for a validated input set."""
    issued = issued_credits(inputs.credits_generated, inputs.issuance_flag)
    prices = inputs.price_per_credit
    L = inputs.horizon
    idx = inputs.purchase_index

    if idx is None or inputs.purchase_share == 0:
        return CreditAllocation(
            issued=tuple(issued),
            entitlement=(0.0,) * L,
            delivered=(0.0,) * L,
            spot_revenue=tuple(q * prices[t] for t, q in enumerate(issued)),
            pre_purchase_revenue=(0.0,) * L,
            implied_purchase_price=0.0,
            purchase_index=None,
        )

    entitlement = [q * inputs.purchase_share for q in issued]
    total_entitled = sum(entitlement)
    cash = inputs.purchase_amount[idx]
    if total_entitled > 0:
        price = cash / total_entitled
    else:
        # nothing is ever issued: the payment stays unearned
        price = 0.0
        logger.warning("pre-purchase of %.2f in %s has no issuance to deliver against", cash, inputs.years[idx])

    # the buyer takes its full share of each issuance in the year it happens
    delivered = list(entitlement)
    spot = [(issued[t] - delivered[t]) * prices[t] for t in range(L)]
    pre = [delivered[t] * price for t in range(L)]
    logger.debug("implied purchase price %.6f over %.4f entitled credits", price, total_entitled)

    return CreditAllocation(
        issued=tuple(issued),
        entitlement=tuple(entitlement),
        delivered=tuple(delivered),
        spot_revenue=tuple(spot),
        pre_purchase_revenue=tuple(pre),
        implied_purchase_price=price,
        purchase_index=idx,
    )


__all__ = ["allocate"]
