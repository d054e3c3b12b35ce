# schemas.py
from enum import Enum
from typing import Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ShipmentStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class DecodeFailureKind(str, Enum):
    EMPTY_INPUT = "EmptyInput"
    TOO_FEW_SEGMENTS = "TooFewSegments"
    DOE_SEGMENT_TOO_SHORT = "DoeSegmentTooShort"
    TOO_SHORT = "TooShort"
    INVALID_DISPATCH_NUMBER = "InvalidDispatchNumber"
    INVALID_GROSS_WEIGHT = "InvalidGrossWeight"


class BarcodeRecord(BaseModel):
    """Fields read off a dispatch label. Only produced by a successful decode."""
    model_config = ConfigDict(frozen=True)

    doe: str = Field(..., min_length=2, max_length=2, description="Office-of-exchange code")
    dispatch_number: str = Field(..., description="Dispatch number without leading zeros")
    gross_weight: float = Field(..., ge=0, description="Gross weight in kg (label value / 10)")


class DecodeFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: DecodeFailureKind
    message: str


class TransitionObservation(BaseModel):
    """One reported write to a shipment's status field."""
    model_config = ConfigDict(frozen=True)

    shipment_id: str
    previous_status: Optional[ShipmentStatus] = None
    new_status: ShipmentStatus


class Shipment(BaseModel):
    id: str
    carrier: str
    subcarrier: Optional[str] = None
    driver_name: Optional[str] = None
    departure_date: Optional[datetime] = None
    arrival_date: Optional[datetime] = None
    status: ShipmentStatus = ShipmentStatus.PENDING
    seal_number: Optional[str] = None
    truck_registration: Optional[str] = None
    trailer_registration: Optional[str] = None
    sender_address: Optional[str] = None
    consignee_address: Optional[str] = None
    total_pallets: int = 0
    total_bags: int = 0
    total_gross_weight: float = 0.0
    total_tare_weight: float = 0.0
    total_net_weight: float = 0.0
    last_updated: Optional[datetime] = None


class ShipmentDetail(BaseModel):
    id: str
    shipment_id: str
    number_of_pallets: int = Field(0, ge=0)
    number_of_bags: int = Field(0, ge=0)
    customer: str
    service: str
    format: Optional[str] = None
    tare_weight: float = Field(..., ge=0)
    gross_weight: float = Field(..., ge=0)
    net_weight: float
    dispatch_number: Optional[str] = None
    doe: Optional[str] = None


# --- Request / response bodies ---

class BarcodeScan(BaseModel):
    raw: str = Field(..., description="Raw string as delivered by the scanner")


class DetailScan(BaseModel):
    raw: str
    customer: str
    service: str
    format: Optional[str] = None
    number_of_pallets: int = Field(0, ge=0)
    number_of_bags: int = Field(0, ge=0)


class StatusUpdate(BaseModel):
    status: ShipmentStatus


class ShipmentUpdate(BaseModel):
    status: Optional[ShipmentStatus] = None
    carrier: Optional[str] = None
    subcarrier: Optional[str] = None
    driver_name: Optional[str] = None
    departure_date: Optional[datetime] = None
    arrival_date: Optional[datetime] = None
    seal_number: Optional[str] = None
    truck_registration: Optional[str] = None
    trailer_registration: Optional[str] = None
    sender_address: Optional[str] = None
    consignee_address: Optional[str] = None


class ShipmentUpdateResponse(BaseModel):
    shipment: Shipment
    documents_triggered: bool
