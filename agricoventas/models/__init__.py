from .user import User
from .location import Location
from .category import Category
from .product import Product, ProductImage
from .order import Order, OrderItem
from .certification import UserCertification
from .review import Review
from .notification import UserNotification
from .product_history import ProductHistory

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'User',
    'Location',
    'Category',
    'Product',
    'ProductImage',
    'Order',
    'OrderItem',
    'UserCertification',
    'Review',
    'UserNotification',
    'ProductHistory',
]
