from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Optional, Union

from schemas import Network
from settings import settings

USSD_PREFIX = "*155*2*1*"
# 1% carrier fee deducted before the amount is embedded in the session code
USSD_NET_RATE = Decimal("0.99")

Amount = Union[Decimal, int, float, str]


def ussd_amount(amount: Amount) -> int:
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    net = max(Decimal(1), value * USSD_NET_RATE)
    # exact decimal arithmetic: 10000 -> 9900, never 9899
    return int(net.to_integral_value(rounding=ROUND_FLOOR))


def ussd_code(amount: Amount, merchant_phone: str) -> str:
    phone = (merchant_phone or "").strip()
    if not phone:
        raise ValueError("merchant phone is required to build a USSD code")
    return f"{USSD_PREFIX}{phone}*{ussd_amount(amount)}#"


def requires_ussd(network: Optional[Network]) -> bool:
    if network is None:
        return False
    name = (network.name or "").strip().lower()
    api = (network.deposit_api or "").strip().lower()
    return name == settings.USSD_NETWORK_NAME.lower() and api == settings.USSD_DEPOSIT_API.lower()
