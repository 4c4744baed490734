from enum import Enum


class SaleStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    PIX = "pix"


# pending -> completed | cancelled; completed and cancelled are terminal
SALE_STATUS_TRANSITIONS: dict[SaleStatus, frozenset[SaleStatus]] = {
    SaleStatus.PENDING: frozenset({SaleStatus.COMPLETED, SaleStatus.CANCELLED}),
    SaleStatus.COMPLETED: frozenset(),
    SaleStatus.CANCELLED: frozenset(),
}
