import asyncio

import pytest

from dispatch_engine.schemas import Shipment, ShipmentStatus
from dispatch_engine.services.store import InMemoryShipmentStore


class RecordingGenerator:
    """Document generator double that records calls in order."""

    def __init__(self, fail_primary=0, fail_secondary=0, hold_primary=False):
        self.calls = []
        self.fail_primary = fail_primary
        self.fail_secondary = fail_secondary
        self.primary_started = asyncio.Event()
        self.release = asyncio.Event()
        if not hold_primary:
            self.release.set()

    async def generate_primary_document(self, shipment):
        self.calls.append(("primary", shipment.id))
        self.primary_started.set()
        await self.release.wait()
        if self.fail_primary:
            self.fail_primary -= 1
            raise RuntimeError("primary renderer exploded")

    async def generate_secondary_document(self, shipment):
        self.calls.append(("secondary", shipment.id))
        if self.fail_secondary:
            self.fail_secondary -= 1
            raise RuntimeError("secondary renderer exploded")

    def count(self, step):
        return sum(1 for s, _ in self.calls if s == step)


def make_shipment(shipment_id="SHP-1", status=ShipmentStatus.PENDING, **fields):
    return Shipment(id=shipment_id, carrier="Royal Mail", status=status, **fields)


@pytest.fixture
def shipment():
    return make_shipment()


@pytest.fixture
def store(shipment):
    return InMemoryShipmentStore([shipment])


@pytest.fixture
def recording_generator():
    return RecordingGenerator


@pytest.fixture
def shipment_factory():
    return make_shipment
