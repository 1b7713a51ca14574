"""Credit balance checks gating audit runs."""

from abc import ABC, abstractmethod

AUDIT_CREDIT_COST = 1


class CreditChecker(ABC):
    """Reports a user's credit balance.  Billing itself lives elsewhere."""

    @abstractmethod
    async def get_balance(self, user_id: str) -> int:
        """Current credit balance for *user_id*."""


class StaticCreditChecker(CreditChecker):
    """Balances from a fixed mapping; unknown users get *default*."""

    def __init__(self, balances: dict[str, int] | None = None, default: int = 0) -> None:
        self._balances = dict(balances or {})
        self._default = default

    async def get_balance(self, user_id: str) -> int:
        return self._balances.get(user_id, self._default)

    def set_balance(self, user_id: str, balance: int) -> None:
        self._balances[user_id] = balance
