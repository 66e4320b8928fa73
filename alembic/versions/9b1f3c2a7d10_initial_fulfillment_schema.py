"""Initial fulfillment schema

Revision ID: 9b1f3c2a7d10
Revises:
Create Date: 2026-10-19 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9b1f3c2a7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('can_login', sa.Boolean(), nullable=False),
        sa.Column('image', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'seller',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('avatar', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('province', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_seller_user_id', 'seller', ['user_id'])

    op.create_table(
        'product',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('seller.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(), nullable=False),
        sa.Column('is_physical', sa.Boolean(), nullable=False),
        sa.Column('cover', sa.String(), nullable=True),
        sa.Column('sku', sa.String(), nullable=True),
        sa.Column('weight', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_product_seller_id', 'product', ['seller_id'])
    op.create_index('ix_product_slug', 'product', ['slug'])

    op.create_table(
        'bundle',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('seller.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(), nullable=False),
        sa.Column('cover', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_bundle_seller_id', 'bundle', ['seller_id'])
    op.create_index('ix_bundle_slug', 'bundle', ['slug'])

    op.create_table(
        'bundleproduct',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bundle_id', sa.Integer(), sa.ForeignKey('bundle.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.UniqueConstraint('bundle_id', 'product_id'),
    )
    op.create_index('ix_bundleproduct_bundle_id', 'bundleproduct', ['bundle_id'])
    op.create_index('ix_bundleproduct_product_id', 'bundleproduct', ['product_id'])

    op.create_table(
        'transaction',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('gateway_order_id', sa.String(), nullable=False),
        sa.Column('currency', sa.String(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('gateway_success', sa.JSON(), nullable=True),
        sa.Column('gateway_pending', sa.JSON(), nullable=True),
        sa.Column('gateway_error', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_transaction_customer_id', 'transaction', ['customer_id'])
    op.create_index('ix_transaction_status', 'transaction', ['status'])
    op.create_index('ix_transaction_gateway_order_id', 'transaction', ['gateway_order_id'], unique=True)

    op.create_table(
        'transactionitem',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transaction.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=True),
        sa.Column('bundle_id', sa.Integer(), sa.ForeignKey('bundle.id'), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.CheckConstraint(
            '(product_id IS NULL) <> (bundle_id IS NULL)',
            name='ck_transactionitem_product_xor_bundle',
        ),
    )
    op.create_index('ix_transactionitem_transaction_id', 'transactionitem', ['transaction_id'])
    op.create_index('ix_transactionitem_product_id', 'transactionitem', ['product_id'])
    op.create_index('ix_transactionitem_bundle_id', 'transactionitem', ['bundle_id'])

    op.create_table(
        'entitlement',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('download_key', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('customer_id', 'product_id', name='uq_entitlement_customer_product'),
    )
    op.create_index('ix_entitlement_customer_id', 'entitlement', ['customer_id'])
    op.create_index('ix_entitlement_product_id', 'entitlement', ['product_id'])

    op.create_table(
        'readingprogress',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('last_page', sa.Integer(), nullable=False),
        sa.Column('percent', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('customer_id', 'product_id', name='uq_readingprogress_customer_product'),
    )
    op.create_index('ix_readingprogress_customer_id', 'readingprogress', ['customer_id'])
    op.create_index('ix_readingprogress_product_id', 'readingprogress', ['product_id'])

    op.create_table(
        'shipment',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transaction.id'), nullable=False),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('seller.id'), nullable=False),
        sa.Column('carrier', sa.String(), nullable=False),
        sa.Column('service', sa.String(), nullable=False),
        sa.Column('cost', sa.Float(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('awb', sa.String(), nullable=True),
        sa.Column('recipient_name', sa.String(), nullable=False),
        sa.Column('recipient_phone', sa.String(), nullable=False),
        sa.Column('address_line', sa.String(), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('province', sa.String(), nullable=False),
        sa.Column('postal_code', sa.String(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('shipped_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('transaction_id', 'seller_id', name='uq_shipment_transaction_seller'),
    )
    op.create_index('ix_shipment_transaction_id', 'shipment', ['transaction_id'])
    op.create_index('ix_shipment_seller_id', 'shipment', ['seller_id'])
    op.create_index('ix_shipment_status', 'shipment', ['status'])
    op.create_index('ix_shipment_created_at', 'shipment', ['created_at'])

    op.create_table(
        'sellerrevenue',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transaction.id'), nullable=False),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('seller.id'), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('info', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('transaction_id', 'seller_id', name='uq_sellerrevenue_transaction_seller'),
    )
    op.create_index('ix_sellerrevenue_transaction_id', 'sellerrevenue', ['transaction_id'])
    op.create_index('ix_sellerrevenue_seller_id', 'sellerrevenue', ['seller_id'])

    op.create_table(
        'gatewaynotification',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transaction.id'), nullable=True),
        sa.Column('gateway_order_id', sa.String(), nullable=False),
        sa.Column('transaction_status', sa.String(), nullable=True),
        sa.Column('fraud_status', sa.String(), nullable=True),
        sa.Column('outcome', sa.String(), nullable=False),
        sa.Column('resulting_status', sa.String(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_gatewaynotification_transaction_id', 'gatewaynotification', ['transaction_id'])
    op.create_index('ix_gatewaynotification_gateway_order_id', 'gatewaynotification', ['gateway_order_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'gatewaynotification',
        'sellerrevenue',
        'shipment',
        'readingprogress',
        'entitlement',
        'transactionitem',
        'transaction',
        'bundleproduct',
        'bundle',
        'product',
        'seller',
        'user',
    ):
        op.drop_table(table)
