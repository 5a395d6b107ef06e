from alembic import op
import sqlalchemy as sa

revision = '0002_add_fk_order_id'
down_revision = '0001_init'
branch_labels = None
depends_on = None

def upgrade():
    # Informational back-reference: follows id changes, never cascades deletes
    op.create_foreign_key(
        'fk_shipments_order_id_orders',
        source_table='shipments',
        referent_table='orders',
        local_cols=['order_id'],
        remote_cols=['id'],
        onupdate='CASCADE'
    )

def downgrade():
    op.drop_constraint('fk_shipments_order_id_orders', 'shipments', type_='foreignkey')
