from .catalog import Customer, Product, Worker, CustomerProduct, WorkerCustomer, DeliveryCharge
from .inventory import InventoryRecord, WorkerInventoryRecord
from .deliveries import (
    DeliveryRecord,
    PaymentRecord,
    CashInHandRecord,
    VerificationBatch,
    VerifiedDeliveryRecord,
)
from .billing import Bill, DocumentSequence

__all__ = [
    'Customer', 'Product', 'Worker', 'CustomerProduct', 'WorkerCustomer', 'DeliveryCharge',
    'InventoryRecord', 'WorkerInventoryRecord',
    'DeliveryRecord', 'PaymentRecord', 'CashInHandRecord',
    'VerificationBatch', 'VerifiedDeliveryRecord',
    'Bill', 'DocumentSequence',
]
