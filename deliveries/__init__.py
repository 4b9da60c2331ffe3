"""
Deliveries domain package.

Public API:
- Domain models: Delivery, Customer, OrderDetails, DeliveryStatus, PricingRule
- Store: DeliveryStore
- Pricing: PricingTable, price_for, default_pricing
- Sequencing: nearest_neighbor_order, optimize_sequence, move_item
"""
from .models import Delivery, Customer, OrderDetails, DeliveryStatus, PricingRule
from .pricing import PricingTable, price_for, default_pricing
from .sequencing import nearest_neighbor_order, optimize_sequence, move_item
from .state import DeliveryStateException
from .store import DeliveryStore

__all__ = ["Delivery",
           "Customer",
           "OrderDetails",
           "DeliveryStatus",
           "PricingRule",
           "PricingTable",
           "price_for",
           "default_pricing",
           "nearest_neighbor_order",
           "optimize_sequence",
           "move_item",
           "DeliveryStateException",
           "DeliveryStore",
           ]
