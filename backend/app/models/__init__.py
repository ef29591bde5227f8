from app.models.user import User, UserRole
from app.models.property import BlockedRange, Property
from app.models.booking import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    CancellationPolicy,
    PaymentStatus,
)
from app.models.notification import (
    Notification,
    NotificationType,
    OutboxEvent,
    OutboxEventType,
    OutboxStatus,
)
from app.models.contact import ContactMessage
from app.models.review import RATING_CATEGORIES, Review

__all__ = [
    "ACTIVE_STATUSES",
    "BlockedRange",
    "Booking",
    "BookingStatus",
    "CancellationPolicy",
    "ContactMessage",
    "Notification",
    "NotificationType",
    "OutboxEvent",
    "OutboxEventType",
    "OutboxStatus",
    "PaymentStatus",
    "Property",
    "RATING_CATEGORIES",
    "Review",
    "User",
    "UserRole",
]
