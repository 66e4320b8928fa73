from app.models.user import User
from app.models.seller import Seller
from app.models.product import Product
from app.models.bundle import Bundle, BundleProduct
from app.models.transaction_item import TransactionItem
from app.models.transaction import Transaction
from app.models.entitlement import Entitlement
from app.models.reading_progress import ReadingProgress
from app.models.shipment import Shipment, ShipmentStatus
from app.models.seller_revenue import SellerRevenue
from app.models.gateway_notification import GatewayNotification, ProcessingOutcome

# add ALL models here
