"""
Completion workflow controller.

Watches (previous status, new status) pairs per shipment and, on the
Pending -> Completed edge only, renders the Pre-Alert (primary) and CMR
(secondary) documents in that order. A shipment stays armed while its
pipeline is in flight so duplicate reports of the same edge cannot fire a
second time.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional, Protocol

from dispatch_engine.config import DEFAULT_SETTLE_INTERVAL_SECONDS
from dispatch_engine.errors import InvalidTransitionObservation
from dispatch_engine.schemas import Shipment, ShipmentStatus, TransitionObservation

logger = logging.getLogger(__name__)

Step = Literal["primary", "secondary"]


class DocumentGenerator(Protocol):
    def generate_primary_document(self, shipment: Shipment) -> Any:
        ...

    def generate_secondary_document(self, shipment: Shipment) -> Any:
        ...


class ShipmentSource(Protocol):
    def get_shipment(self, shipment_id: str) -> Shipment:
        ...


@dataclass(frozen=True)
class SideEffectOutcome:
    """
    Result of one observation.

    Attributes:
        shipment_id: Shipment the observation was about
        fired: Whether the observation triggered document generation
        failed_step: Which generation step raised, if any
        error: The exception raised by that step
    """

    shipment_id: str
    fired: bool
    failed_step: Optional[Step] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.fired and self.failed_step is None


def _require_status(value, field: str, allow_none: bool = False) -> Optional[ShipmentStatus]:
    if value is None and allow_none:
        return None
    try:
        return ShipmentStatus(value)
    except ValueError:
        raise InvalidTransitionObservation(f"{field} must be one of Pending/Completed, got {value!r}") from None


async def _call(fn, shipment: Shipment):
    if inspect.iscoroutinefunction(fn):
        return await fn(shipment)
    return await asyncio.to_thread(fn, shipment)


class CompletionWorkflowController:
    def __init__(
        self,
        generator: DocumentGenerator,
        shipments: Optional[ShipmentSource] = None,
        settle_interval: float = DEFAULT_SETTLE_INTERVAL_SECONDS,
    ):
        self.generator = generator
        self.shipments = shipments
        self.settle_interval = settle_interval
        self._armed: dict[str, bool] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        # observe/dispatch calls currently holding or waiting on an id's lock
        self._waiters: dict[str, int] = {}

    def is_armed(self, shipment_id: str) -> bool:
        return self._armed.get(shipment_id, False)

    def is_generating(self, shipment_id: str) -> bool:
        return shipment_id in self._in_flight

    async def observe(
        self, obs: TransitionObservation, shipment: Optional[Shipment] = None
    ) -> SideEffectOutcome:
        """
        Report a status write and wait for any generation it triggers.

        The pipeline is shielded: cancelling the caller does not cancel
        generation, which always runs to completion.
        """
        task = await self._arm(obs, shipment)
        if task is None:
            return SideEffectOutcome(shipment_id=obs.shipment_id, fired=False)
        return await asyncio.shield(task)

    async def dispatch(
        self, obs: TransitionObservation, shipment: Optional[Shipment] = None
    ) -> SideEffectOutcome:
        """Fire-and-forget variant of observe(); failures are only logged."""
        task = await self._arm(obs, shipment)
        return SideEffectOutcome(shipment_id=obs.shipment_id, fired=task is not None)

    async def drain(self) -> list[SideEffectOutcome]:
        """Wait for every in-flight pipeline."""
        tasks = list(self._in_flight.values())
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))

    async def _arm(self, obs: TransitionObservation, shipment: Optional[Shipment]) -> Optional[asyncio.Task]:
        previous = _require_status(obs.previous_status, "previous_status", allow_none=True)
        new = _require_status(obs.new_status, "new_status")
        shipment_id = obs.shipment_id

        lock = self._locks.setdefault(shipment_id, asyncio.Lock())
        self._waiters[shipment_id] = self._waiters.get(shipment_id, 0) + 1
        try:
            async with lock:
                return self._check_and_set(shipment_id, previous, new, shipment)
        finally:
            self._waiters[shipment_id] -= 1
            self._forget_if_idle(shipment_id)

    def _check_and_set(self, shipment_id, previous, new, shipment) -> Optional[asyncio.Task]:
        armed = self._armed.get(shipment_id, False)
        is_edge = previous is ShipmentStatus.PENDING and new is ShipmentStatus.COMPLETED

        if is_edge and not armed:
            self._armed[shipment_id] = True
            task = asyncio.create_task(self._run_pipeline(shipment_id, shipment))
            self._in_flight[shipment_id] = task
            logger.info(f"[Completion] {shipment_id}: Pending -> Completed. Generating documents.")
            return task

        if armed and shipment_id not in self._in_flight:
            logger.warning(f"[Completion] {shipment_id}: stale armed flag with no pipeline running. Resetting.")
            self._armed[shipment_id] = False

        logger.debug(
            f"[Completion] {shipment_id}: no-op ({previous.value if previous else None} -> {new.value}, armed={armed})"
        )
        return None

    async def _load(self, shipment_id: str, shipment: Optional[Shipment]) -> Shipment:
        if shipment is not None:
            return shipment
        if self.shipments is None:
            raise RuntimeError(f"No shipment record supplied for {shipment_id} and no store configured")
        return await asyncio.to_thread(self.shipments.get_shipment, shipment_id)

    async def _run_pipeline(self, shipment_id: str, shipment: Optional[Shipment]) -> SideEffectOutcome:
        try:
            try:
                record = await self._load(shipment_id, shipment)
                await _call(self.generator.generate_primary_document, record)
            except Exception as e:
                logger.error(f"[Completion] {shipment_id}: primary document failed: {e}")
                return SideEffectOutcome(shipment_id=shipment_id, fired=True, failed_step="primary", error=e)

            if self.settle_interval > 0:
                await asyncio.sleep(self.settle_interval)

            try:
                await _call(self.generator.generate_secondary_document, record)
            except Exception as e:
                logger.error(f"[Completion] {shipment_id}: secondary document failed: {e}")
                return SideEffectOutcome(shipment_id=shipment_id, fired=True, failed_step="secondary", error=e)

            logger.info(f"[Completion] {shipment_id}: documents generated.")
            return SideEffectOutcome(shipment_id=shipment_id, fired=True)
        finally:
            self._armed[shipment_id] = False
            self._in_flight.pop(shipment_id, None)
            self._forget_if_idle(shipment_id)

    def _forget_if_idle(self, shipment_id: str):
        if self._waiters.get(shipment_id, 0) or self._armed.get(shipment_id) or shipment_id in self._in_flight:
            return
        self._waiters.pop(shipment_id, None)
        self._armed.pop(shipment_id, None)
        self._locks.pop(shipment_id, None)
