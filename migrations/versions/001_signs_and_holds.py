"""signs_and_holds

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'signs',
        sa.Column('id', sa.Text(), nullable=False),
        # NULL tenant_id = platform-wide sign shared by every agency
        sa.Column('tenant_id', sa.Text(), nullable=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('category', sa.Text(), nullable=False),
        sa.Column('theme', sa.Text(), nullable=True),
        sa.Column('keywords', postgresql.ARRAY(sa.Text()), server_default='{}', nullable=False),
        sa.Column('width', sa.Numeric(6, 2), nullable=False),
        sa.Column('height', sa.Numeric(6, 2), nullable=False),
        sa.Column('total_quantity', sa.Integer(), nullable=False),
        sa.Column('available_quantity', sa.Integer(), nullable=False),
        sa.Column('available', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('zone', sa.Text(), nullable=True),
        sa.Column('sign_type', sa.Text(), nullable=True),
        sa.Column('character', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('total_quantity >= 0', name='ck_signs_total_quantity'),
        sa.CheckConstraint(
            'available_quantity >= 0 AND available_quantity <= total_quantity',
            name='ck_signs_available_quantity',
        ),
        sa.CheckConstraint('width > 0 AND height > 0', name='ck_signs_dimensions'),
    )
    op.create_index('ix_signs_tenant_category', 'signs', ['tenant_id', 'category'], unique=False)

    op.create_table(
        'inventory_holds',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('session_id', sa.Text(), nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('customer_id', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='active', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('active', 'expired', 'converted')", name='ck_inventory_holds_status'),
    )
    op.create_index('ix_inventory_holds_status_expires', 'inventory_holds', ['status', 'expires_at'], unique=False)
    op.create_index('ix_inventory_holds_tenant', 'inventory_holds', ['tenant_id'], unique=False)
    op.create_index('ix_inventory_holds_session', 'inventory_holds', ['session_id'], unique=False)

    op.create_table(
        'inventory_hold_items',
        sa.Column('id', sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column('hold_id', sa.Text(), nullable=False),
        sa.Column('sign_id', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('hold_type', sa.Text(), server_default='soft', nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['hold_id'], ['inventory_holds.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sign_id'], ['signs.id']),
        sa.CheckConstraint('quantity >= 1', name='ck_inventory_hold_items_quantity'),
        sa.CheckConstraint("hold_type IN ('soft', 'hard')", name='ck_inventory_hold_items_hold_type'),
    )
    op.create_index('ix_inventory_hold_items_hold', 'inventory_hold_items', ['hold_id', 'position'], unique=False)
    op.create_index('ix_inventory_hold_items_sign', 'inventory_hold_items', ['sign_id'], unique=False)


def downgrade():
    op.drop_index('ix_inventory_hold_items_sign', table_name='inventory_hold_items')
    op.drop_index('ix_inventory_hold_items_hold', table_name='inventory_hold_items')
    op.drop_table('inventory_hold_items')
    op.drop_index('ix_inventory_holds_session', table_name='inventory_holds')
    op.drop_index('ix_inventory_holds_tenant', table_name='inventory_holds')
    op.drop_index('ix_inventory_holds_status_expires', table_name='inventory_holds')
    op.drop_table('inventory_holds')
    op.drop_index('ix_signs_tenant_category', table_name='signs')
    op.drop_table('signs')
