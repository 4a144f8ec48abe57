"""SQLModel сущности BetHub."""

from .account import Account, AccountStatus, RoleLevel  # noqa: F401
from .ledger import PointListEntry, TurnoverSeed  # noqa: F401
from .settlement import SettlementOrder, SettlementStatus  # noqa: F401

__all__ = [
    "Account",
    "AccountStatus",
    "PointListEntry",
    "RoleLevel",
    "SettlementOrder",
    "SettlementStatus",
    "TurnoverSeed",
]
