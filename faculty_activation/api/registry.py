"""
Flow registry - In-memory activation flows, one per mounted screen.

Flows are addressed by an opaque id and live only in process memory.
The registry is bounded; when full, the oldest flow is disposed to make
room. Nothing survives a restart, so an interrupted activation starts
again from the token step.
"""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass

from faculty_activation.adapters.notify.console import ConsoleNotifier
from faculty_activation.domain.activation import ActivationFlow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowHandle:
    """A registered flow and the notifier its notices are queued on."""

    flow_id: str
    flow: ActivationFlow
    notifier: ConsoleNotifier


class FlowRegistry:
    """Bounded, insertion-ordered store of activation flows."""

    def __init__(self, max_flows: int = 1000) -> None:
        if max_flows < 1:
            raise ValueError("max_flows must be at least 1")
        self._max_flows = max_flows
        self._flows: OrderedDict[str, FlowHandle] = OrderedDict()

    def __len__(self) -> int:
        return len(self._flows)

    def __contains__(self, flow_id: object) -> bool:
        return flow_id in self._flows

    def add(self, flow: ActivationFlow, notifier: ConsoleNotifier) -> FlowHandle:
        """
        Register a flow under a fresh id.

        Evicts (and disposes) the oldest flow when the registry is full.
        """
        while len(self._flows) >= self._max_flows:
            evicted_id, evicted = self._flows.popitem(last=False)
            evicted.flow.dispose()
            logger.info("Evicted activation flow %s", evicted_id)

        handle = FlowHandle(flow_id=uuid.uuid4().hex, flow=flow, notifier=notifier)
        self._flows[handle.flow_id] = handle
        return handle

    def get(self, flow_id: str) -> FlowHandle | None:
        return self._flows.get(flow_id)

    def remove(self, flow_id: str) -> bool:
        """Dispose and forget a flow. Returns False if it was unknown."""
        handle = self._flows.pop(flow_id, None)
        if handle is None:
            return False
        handle.flow.dispose()
        return True

    def close_all(self) -> None:
        for handle in self._flows.values():
            handle.flow.dispose()
        self._flows.clear()
