from deliveries.models import Delivery, DeliveryStatus

# Allowed moves. Re-applying the current status is accepted as a no-op.
ALLOWED_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.PENDING, DeliveryStatus.DELIVERED},
    DeliveryStatus.DELIVERED: {DeliveryStatus.DELIVERED, DeliveryStatus.PENDING},
}


class DeliveryStateException(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def coerce_status(status) -> DeliveryStatus:
    """Accepts a DeliveryStatus or its string value ("pending" / "delivered")."""
    if isinstance(status, DeliveryStatus):
        return status
    try:
        return DeliveryStatus(status)
    except ValueError:
        raise DeliveryStateException(f"Unknown delivery status {status!r}")


def check_transition(delivery: Delivery, status) -> DeliveryStatus:
    """
    Validates pending -> delivered (mark delivered) and delivered -> pending (undo).
    Returns the target status.
    """
    target = coerce_status(status)
    if target not in ALLOWED_TRANSITIONS[delivery.status]:
        raise DeliveryStateException(
            f"Cannot transition delivery {delivery.id} from {delivery.status.value} to {target.value}"
        )
    return target
