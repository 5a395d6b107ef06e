from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'shipments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('tracking_code', sa.String(45), nullable=False, unique=True),
        sa.Column('cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('dispatch_date', sa.Date, nullable=False),
        sa.Column('estimated_arrival_date', sa.Date, nullable=False),
        sa.Column('shipment_type', sa.String(45), nullable=False),
        sa.Column('carrier', sa.String(45), nullable=False),
        sa.Column('status', sa.String(45), nullable=False),
        sa.Column('order_id', sa.Integer, nullable=True)
    )
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('order_number', sa.String(20), nullable=False),
        sa.Column('deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('order_date', sa.Date, nullable=False),
        sa.Column('customer_name', sa.String(120), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(45), nullable=False),
        sa.Column('shipment_id', sa.Integer, sa.ForeignKey('shipments.id', name='fk_orders_shipment_id_shipments'), nullable=True)
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_shipment_id', 'orders', ['shipment_id'])
    op.create_check_constraint('ck_orders_total_non_negative', 'orders', 'total >= 0')
    op.create_check_constraint('ck_shipments_arrival_after_dispatch', 'shipments', 'estimated_arrival_date >= dispatch_date')

def downgrade():
    op.drop_index('ix_orders_shipment_id', table_name='orders')
    op.drop_index('ix_orders_order_number', table_name='orders')
    op.drop_table('orders')
    op.drop_table('shipments')
