from .catalog import Product, StockEntry
from .customers import Customer
from .orders import Order, OrderItem, OrderPayment, OrderEvent
from .sequences import DisplayIdSequence

__all__ = [
    'Product', 'StockEntry',
    'Customer',
    'Order', 'OrderItem', 'OrderPayment', 'OrderEvent',
    'DisplayIdSequence',
]
