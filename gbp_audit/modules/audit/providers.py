"""Signal provider interface.

Live adapters (Business Profile API, Places, rank trackers) implement
:class:`SignalProvider` outside this package and hand back fully
normalized :class:`~gbp_audit.signals.AuditSignals`.
"""

from abc import ABC, abstractmethod

from gbp_audit.signals import AuditSignals


class SignalProvider(ABC):

    @abstractmethod
    async def fetch_signals(self, user_id: str, entity_id: str) -> AuditSignals:
        """Return the normalized signal bundle for one entity."""


class StaticSignalProvider(SignalProvider):
    """Serves pre-built bundles keyed by entity id.

    Raises ``KeyError`` for unknown entities; the orchestrator reports that
    as a failed fetch rather than inventing data.
    """

    def __init__(self, bundles: dict[str, AuditSignals] | None = None) -> None:
        self._bundles = dict(bundles or {})
        self.fetch_count = 0

    def add(self, entity_id: str, signals: AuditSignals) -> None:
        self._bundles[entity_id] = signals

    async def fetch_signals(self, user_id: str, entity_id: str) -> AuditSignals:
        self.fetch_count += 1
        return self._bundles[entity_id]
