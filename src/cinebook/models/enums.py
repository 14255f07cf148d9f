"""Status and category enumerations shared by models and schemas."""

from enum import Enum

from sqlalchemy import Enum as SAEnum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class SeatType(str, Enum):
    REGULAR = "regular"
    VIP = "vip"
    COUPLE = "couple"
    QUEEN = "queen"


class SeatStatus(str, Enum):
    ACTIVE = "active"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"
    OUT_OF_ORDER = "out_of_order"
    CLOSED = "closed"


# Seats in these states cannot be sold regardless of bookings
UNSELLABLE_SEAT_STATUSES = frozenset(
    {SeatStatus.MAINTENANCE, SeatStatus.OUT_OF_ORDER, SeatStatus.CLOSED}
)


class ShowtimeStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    BAKONG = "Bakong"
    CASH = "Cash"
    CARD = "Card"
    MOBILE_BANKING = "Mobile Banking"
    BANK_TRANSFER = "Bank Transfer"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class BookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


def enum_column(enum_cls: type[Enum], length: int = 20) -> SAEnum:
    """Store an enum by value in a VARCHAR column with a CHECK constraint."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
