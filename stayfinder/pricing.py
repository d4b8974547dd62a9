# Price math shared by quotes and booking creation.
# Amounts are integers in the currency's minor unit (cents); the fee is rounded half-up to that unit.
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from .errors import InvalidRequest

# Guest-facing service surcharge applied to the nightly subtotal; configurable via SERVICE_FEE_RATE.
SERVICE_FEE_RATE = Decimal(os.getenv("SERVICE_FEE_RATE", "0.12"))


@dataclass(frozen=True)
class PriceQuote:
    nights: int
    subtotal: int
    fee: int
    total: int


def count_nights(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def compute_total(
    nightly_price: int,
    check_in: date,
    check_out: date,
    service_fee_rate: Union[Decimal, float, str] = SERVICE_FEE_RATE,
) -> PriceQuote:
    """
    Authoritative price for a stay.

    - nights = check_out - check_in in days; at least one night is required
    - subtotal = nightly_price * nights
    - fee = subtotal * service_fee_rate, rounded half-up to a whole minor unit
    - total = subtotal + fee

    Raises InvalidRequest for zero/negative-night ranges or a non-positive price.
    """
    nights = count_nights(check_in, check_out)
    if nights < 1:
        raise InvalidRequest("check_out must be at least one night after check_in")
    if nightly_price <= 0:
        raise InvalidRequest("Nightly price must be positive")

    # str() first so float rates like 0.12 do not carry binary noise into the rounding
    rate = Decimal(str(service_fee_rate))
    if rate < 0:
        raise InvalidRequest("Service fee rate cannot be negative")

    subtotal = nightly_price * nights
    fee = int((Decimal(subtotal) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return PriceQuote(nights=nights, subtotal=subtotal, fee=fee, total=subtotal + fee)
