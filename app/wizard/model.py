from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from schemas import BetIdentity, Direction, Network, Platform, UserPhone

STEP_PLATFORM = 1
STEP_IDENTITY = 2
STEP_NETWORK = 3
STEP_PHONE = 4
STEP_AMOUNT = 5
TOTAL_STEPS = STEP_AMOUNT

STEP_NAMES = {
    STEP_PLATFORM: "SelectPlatform",
    STEP_IDENTITY: "SelectIdentity",
    STEP_NETWORK: "SelectNetwork",
    STEP_PHONE: "SelectPhone",
    STEP_AMOUNT: "SetAmount",
}


@dataclass(frozen=True)
class WizardState:
    direction: Direction
    step: int = STEP_PLATFORM
    platform: Optional[Platform] = None
    identity: Optional[BetIdentity] = None
    network: Optional[Network] = None
    phone: Optional[UserPhone] = None
    amount: Decimal = Decimal(0)
    withdrawal_code: str = ""
    # confirmation view open; submission only happens from here
    confirming: bool = False

    @property
    def step_name(self) -> str:
        return STEP_NAMES[self.step]


@dataclass(frozen=True)
class ConfirmationSummary:
    direction: Direction
    platform_name: str
    identity: str
    network_name: str
    phone: str
    amount: Decimal
    withdrawal_code: Optional[str] = None
