"""Initial receipt import schema

Revision ID: 20261019_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261019_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_email', sa.String(length=100), nullable=True),
        sa.Column('contact_phone', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_suppliers_restaurant_id'), 'suppliers', ['restaurant_id'], unique=False)

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('current_stock', sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column('cost_per_unit', sa.Numeric(precision=14, scale=4), nullable=True),
        sa.Column('uom_purchase', sa.String(length=32), nullable=True),
        sa.Column('package_type', sa.String(length=32), nullable=True),
        sa.Column('size_value', sa.Numeric(precision=14, scale=3), nullable=True),
        sa.Column('size_unit', sa.String(length=16), nullable=True),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('receipt_item_names', sa.JSON(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_products_restaurant_id'), 'products', ['restaurant_id'], unique=False)

    op.create_table('product_abbreviations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('abbreviation', sa.String(length=255), nullable=False),
        sa.Column('full_term', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('restaurant_id', 'abbreviation', name='uq_product_abbreviations_restaurant_abbr')
    )
    op.create_index(op.f('ix_product_abbreviations_restaurant_id'), 'product_abbreviations', ['restaurant_id'], unique=False)

    op.create_table('product_suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('supplier_product_name', sa.String(length=255), nullable=True),
        sa.Column('supplier_sku', sa.String(length=64), nullable=True),
        sa.Column('last_unit_cost', sa.Numeric(precision=14, scale=4), nullable=True),
        sa.Column('last_purchase_date', sa.Date(), nullable=True),
        sa.Column('last_purchase_quantity', sa.Numeric(precision=14, scale=3), nullable=True),
        sa.Column('average_unit_cost', sa.Numeric(precision=14, scale=4), nullable=True),
        sa.Column('purchase_count', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'supplier_id', name='uq_product_suppliers_product_supplier')
    )
    op.create_index(op.f('ix_product_suppliers_restaurant_id'), 'product_suppliers', ['restaurant_id'], unique=False)

    op.create_table('receipt_imports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('vendor_name', sa.String(length=255), nullable=True),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('imported_total', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_receipt_imports_restaurant_id'), 'receipt_imports', ['restaurant_id'], unique=False)

    op.create_table('receipt_line_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('receipt_id', sa.Integer(), nullable=False),
        sa.Column('line_sequence', sa.Integer(), nullable=True),
        sa.Column('raw_text', sa.String(length=255), nullable=False),
        sa.Column('parsed_name', sa.String(length=255), nullable=True),
        sa.Column('parsed_quantity', sa.Numeric(precision=14, scale=3), nullable=True),
        sa.Column('parsed_unit', sa.String(length=32), nullable=True),
        sa.Column('parsed_price', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('parsed_sku', sa.String(length=64), nullable=True),
        sa.Column('unit_price', sa.Numeric(precision=14, scale=4), nullable=True),
        sa.Column('package_type', sa.String(length=32), nullable=True),
        sa.Column('size_value', sa.Numeric(precision=14, scale=3), nullable=True),
        sa.Column('size_unit', sa.String(length=16), nullable=True),
        sa.Column('matched_product_id', sa.Integer(), nullable=True),
        sa.Column('confidence_score', sa.Float(), nullable=True),
        sa.Column('mapping_status', sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['receipt_id'], ['receipt_imports.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['matched_product_id'], ['products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_receipt_line_items_receipt_id'), 'receipt_line_items', ['receipt_id'], unique=False)
    op.create_index(op.f('ix_receipt_line_items_matched_product_id'), 'receipt_line_items', ['matched_product_id'], unique=False)

    op.create_table('inventory_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column('unit_cost', sa.Numeric(precision=14, scale=4), nullable=True),
        sa.Column('total_cost', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('transaction_type', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('reference_id', sa.String(length=128), nullable=True),
        sa.Column('transaction_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference_id')
    )
    op.create_index(op.f('ix_inventory_transactions_restaurant_id'), 'inventory_transactions', ['restaurant_id'], unique=False)
    op.create_index(op.f('ix_inventory_transactions_product_id'), 'inventory_transactions', ['product_id'], unique=False)


def downgrade() -> None:
    op.drop_table('inventory_transactions')
    op.drop_table('receipt_line_items')
    op.drop_table('receipt_imports')
    op.drop_table('product_suppliers')
    op.drop_table('product_abbreviations')
    op.drop_table('products')
    op.drop_table('suppliers')
