class DispatchEngineError(Exception):
    """Base class for every error raised by the dispatch engine."""


class BarcodeDecodeError(DispatchEngineError):
    """Raised by decode_or_raise when a scanned label cannot be decoded."""

    def __init__(self, failure):
        super().__init__(f"{failure.kind.value}: {failure.message}")
        self.failure = failure

    @property
    def kind(self):
        return self.failure.kind


class InvalidTransitionObservation(DispatchEngineError, ValueError):
    """A status outside Pending/Completed was reported to the controller."""


class ShipmentNotFound(DispatchEngineError, LookupError):
    def __init__(self, shipment_id: str):
        super().__init__(f"Shipment {shipment_id} not found")
        self.shipment_id = shipment_id


class ShipmentLocked(DispatchEngineError):
    """Details cannot be added to a shipment that is already Completed."""

    def __init__(self, shipment_id: str):
        super().__init__(f"Shipment {shipment_id} is completed; details are locked")
        self.shipment_id = shipment_id
