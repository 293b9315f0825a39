from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Dict


class DiscountType(Enum):
    AMOUNT = "amount"
    PERCENTAGE = "percentage"


class Severity(Enum):
    ERROR = "error"
    SUCCESS = "success"
    WARNING = "warning"


class ErrorKind(Enum):
    OUT_OF_STOCK = "out_of_stock"
    STOCK_EXCEEDED = "stock_exceeded"
    INVALID_INPUT = "invalid_input"
    DUPLICATE_CODE = "duplicate_code"
    DUPLICATE_NAME = "duplicate_name"
    NOT_FOUND = "not_found"
    COUPON_NOT_APPLICABLE = "coupon_not_applicable"


@dataclass(frozen=True)
class Failure:
    """Отказ операции: вид ошибки + сообщение для пользователя"""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class DiscountTier:
    quantity: int  # порог количества
    rate: float  # доля (0, 1]


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: int
    stock: int
    discount_tiers: Tuple[DiscountTier, ...] = ()
    description: str = ""
    is_recommended: bool = False


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class Cart:
    lines: Tuple[CartLine, ...] = ()


@dataclass(frozen=True)
class Coupon:
    code: str
    name: str
    discount_type: DiscountType
    discount_value: int


@dataclass(frozen=True)
class CartTotals:
    total_before_discount: int
    total_after_discount: int

    @property
    def total_discount(self) -> int:
        return self.total_before_discount - self.total_after_discount


@dataclass(frozen=True)
class LineRow:
    """Строка корзины для витрины: всё, что нужно показать по одной позиции"""

    product: Product
    quantity: int
    rate: float
    total: int
    undiscounted: int


@dataclass(frozen=True)
class Order:
    id: str
    lines: Tuple[CartLine, ...]
    total_before_discount: int
    total_after_discount: int
    coupon_code: Optional[str] = None


@dataclass(frozen=True)
class Notification:
    id: str
    message: str
    severity: Severity
    created_at: float


@dataclass(frozen=True)
class Event:
    id: str
    ts: str
    name: str
    payload: Dict
