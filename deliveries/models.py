"""
Purpose: Domain models for the Deliveries capability.
What it does:
- Defines core data structures:
- Delivery (id, location, address, customer, order details, status)
- Customer (name, phone)
- OrderDetails (items, paid flag, amount, delivery fee, payment details)
- PricingRule (max_km, price)

Defines enums/constants:
- DeliveryStatus = PENDING | DELIVERED
- placeholder address strings shown while reverse geocoding is in flight

Rule: No HTTP calls, no sequencing logic. Models only.
All models are frozen: the store hands out snapshots and replaces them on update.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
import uuid

LatLon = Tuple[float, float]

LOADING_ADDRESS = "Loading address..."
UPDATING_ADDRESS = "Updating address..."


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"


@dataclass(frozen=True)
class Customer:
    name: str = ""
    phone: str = ""


@dataclass(frozen=True)
class OrderDetails:
    """
    What the courier carries and collects for one drop.
    amount and delivery_fee are currency values >= 0.
    """
    items: str = ""
    is_paid: bool = False
    amount: float = 0.0
    delivery_fee: float = 0.0
    payment_details: Optional[str] = None

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("amount must be >= 0")
        if self.delivery_fee < 0:
            raise ValueError("delivery_fee must be >= 0")


@dataclass(frozen=True)
class Delivery:
    """
    Represents a single parcel drop.
    """

    id: str
    location: LatLon
    address: str = LOADING_ADDRESS
    customer: Customer = field(default_factory=Customer)
    order: OrderDetails = field(default_factory=OrderDetails)
    status: DeliveryStatus = DeliveryStatus.PENDING

    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_pending(self) -> bool:
        return self.status == DeliveryStatus.PENDING

    @property
    def total(self) -> float:
        """Amount to collect on arrival: order amount plus delivery fee."""
        return self.order.amount + self.order.delivery_fee

    @staticmethod # Factory method so every delivery gets a fresh opaque id
    def new(location: LatLon, delivery_fee: float = 0.0, address: str = LOADING_ADDRESS) -> Delivery:
        return Delivery(
            id=str(uuid.uuid4()),
            location=location,
            address=address,
            order=OrderDetails(delivery_fee=delivery_fee),
        )


@dataclass(frozen=True)
class PricingRule:
    """
    One tier of the fee table: distances up to max_km (inclusive) cost price.
    """
    max_km: float
    price: float
