from decimal import Decimal
from enum import Enum

# Defaults. The CLI and the web app can override them.
BASE_CURRENCY = "cad"
CASH_QUANTUM = Decimal("0.01")
RATIO_QUANTUM = Decimal("0.01")
HOLDINGS_LABEL_THRESHOLD = Decimal("2.5")
GROUP_LABEL_THRESHOLD = Decimal("2")

# Dashboard colour names for the sign of a gain
GAIN_COLOR = "green"
LOSS_COLOR = "red"


class GroupTypeEnum(str, Enum):
    """Dimension used to partition accounts"""

    CURRENCY = "currency"
    TYPE = "type"
    INSTITUTION = "institution"
    CUSTOM = "custom"

    def __str__(self):
        return self.value


class SideEnum(str, Enum):
    """Transaction side for the activity tables"""

    BUY = "buy"
    SELL = "sell"

    def __str__(self):
        return self.value


def start_case(label: str) -> str:
    """'non_registered' -> 'Non Registered'"""
    words = label.replace("_", " ").replace("-", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


class PnlviewException(Exception):
    """Base exception for pnlview"""
