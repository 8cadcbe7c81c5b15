from .tenancy import Tenant, User, SessionToken
from .sequences import SerialSequence
from .orders import Order, OrderItem, AdminOrder, AdminOrderItem, OrderSyncEvent
from .webhooks import WebhookConfig, WebhookLog
from .finance import Transaction, CustomerPayment, WorkshopPayment

__all__ = [
    'Tenant', 'User', 'SessionToken',
    'SerialSequence',
    'Order', 'OrderItem', 'AdminOrder', 'AdminOrderItem', 'OrderSyncEvent',
    'WebhookConfig', 'WebhookLog',
    'Transaction', 'CustomerPayment', 'WorkshopPayment',
]
