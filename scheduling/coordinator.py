"""Dual-period coordinator for the front desk board."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, Mapping, Optional

from .models import Period
from .period_store import PeriodStore
from .reconciliation import ReconciliationController, serialized
from .slots import RESERVED_NUMBERS
from .sync import BoardBackend, RemoteSyncAdapter

logger = logging.getLogger(__name__)


class FrontDeskBoard:
    """Holds the independent ``today`` and ``yesterday`` controllers.

    Each period owns its own store, so numbering, availability and edit
    cursors never leak across periods. Both share the one sync adapter, and
    therefore the one remote-available flag, and one action lock so a load or
    reload never interleaves with an action on either period.
    """

    def __init__(
        self,
        backend: Optional[BoardBackend] = None,
        *,
        sync: Optional[RemoteSyncAdapter] = None,
        reserved_table: Mapping[str, Iterable[int]] = RESERVED_NUMBERS,
    ) -> None:
        self._sync = sync or RemoteSyncAdapter(backend)
        self._lock = threading.RLock()
        self._controllers: Dict[Period, ReconciliationController] = {
            period: ReconciliationController(
                PeriodStore(period, reserved_table), self._sync, lock=self._lock
            )
            for period in Period
        }
        self.loaded = False

    @property
    def today(self) -> ReconciliationController:
        return self._controllers[Period.TODAY]

    @property
    def yesterday(self) -> ReconciliationController:
        return self._controllers[Period.YESTERDAY]

    @property
    def online(self) -> bool:
        return self._sync.available

    @property
    def doctors(self) -> tuple[str, ...]:
        return self.today.store.doctors

    def period(self, period: Period | str) -> ReconciliationController:
        return self._controllers[Period.coerce(period)]

    @serialized
    def start(self) -> bool:
        """Probe the remote once, then load or synthesize both periods.

        Returns True when the board is running against the remote store.
        """

        if self._sync.probe():
            for period in (Period.TODAY, Period.YESTERDAY):
                self._controllers[period].load()
            logger.info("Board loaded from remote store (online=%s)", self._sync.available)
        else:
            for controller in self._controllers.values():
                controller.seed_local()
            logger.info("Board started in offline mode with frozen baseline")
        self.loaded = True
        return self._sync.available

    def reload(self) -> bool:
        """Rerun the probe and the full load; the only path back online."""

        return self.start()

    @serialized
    def statistics(self) -> Dict[str, Dict[str, int]]:
        return {period.value: controller.store.statistics() for period, controller in self._controllers.items()}

    @serialized
    def snapshot(self) -> Dict[str, Any]:
        """Plain, JSON-safe copy of the board for renderers."""

        return {
            "online": self.online,
            "loaded": self.loaded,
            "periods": {
                period.value: controller.snapshot() for period, controller in self._controllers.items()
            },
        }
