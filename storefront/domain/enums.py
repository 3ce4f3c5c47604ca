# storefront/domain/enums.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    SQUARE = "square"


class MoodCategory(str, Enum):
    RELAXING = "relaxing"
    ENERGIZING = "energizing"
    ROMANTIC = "romantic"


class ProductType(str, Enum):
    CONTAINER = "container"
    PILLAR = "pillar"
    SEASONAL = "seasonal"
    GIFT_SET = "gift_set"
