"""
Shared enums and constants used across the application.
"""

from enum import Enum


class UserType(str, Enum):
    """Roles a marketplace account can hold"""
    ADMIN = "ADMIN"
    SELLER = "SELLER"
    BUYER = "BUYER"


class SubscriptionType(str, Enum):
    NORMAL = "NORMAL"
    PREMIUM = "PREMIUM"


class OrderStatus(str, Enum):
    """Order lifecycle values used in both models and schemas"""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_cancellable(self) -> bool:
        return self in (OrderStatus.PENDING, OrderStatus.PROCESSING)


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH = "CASH"
    PAYPAL = "PAYPAL"


class CertificationType(str, Enum):
    """Regulatory certificate codes a seller must hold verified"""
    INVIMA = "INVIMA"
    ICA = "ICA"
    REGISTRO_SANITARIO = "REGISTRO_SANITARIO"
    CERTIFICADO_ORGANICO = "CERTIFICADO_ORGANICO"


REQUIRED_CERTIFICATIONS = [c.value for c in CertificationType]


class CertificationStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class ChangeType(str, Enum):
    """Kinds of product history rows"""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class NotificationType(str, Enum):
    PRODUCT_CREATED = "PRODUCT_CREATED"
    ORDER_PLACED = "ORDER_PLACED"
    NEW_ORDER = "NEW_ORDER"
    ORDER_STATUS = "ORDER_STATUS"
    LOW_STOCK = "LOW_STOCK"
    CERTIFICATION_UPLOADED = "CERTIFICATION_UPLOADED"
    CERTIFICATION_UPDATED = "CERTIFICATION_UPDATED"
    CERTIFICATION_STATUS = "CERTIFICATION_STATUS"
    NEW_CERTIFICATION = "NEW_CERTIFICATION"
    PRODUCT_REVIEW = "PRODUCT_REVIEW"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"


class RelatedEntityType(str, Enum):
    PRODUCT = "PRODUCT"
    ORDER = "ORDER"
    CERTIFICATION = "CERTIFICATION"
    REVIEW = "REVIEW"
