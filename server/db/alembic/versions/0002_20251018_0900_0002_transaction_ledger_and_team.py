"""Transaction ledger and team members

Revision ID: 0002
Revises: 0001
Create Date: 2025-10-18 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: str | None = '0001'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create transaction_logs table
    op.create_table('transaction_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('transaction_id', sa.String(length=40), nullable=False),
        sa.Column('booking_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='PENDING', nullable=False),
        sa.Column('gross_amount', sa.Float(), nullable=False),
        sa.Column('net_amount', sa.Float(), nullable=False),
        sa.Column('tax_amount', sa.Float(), server_default='0', nullable=False),
        sa.Column('processing_fee', sa.Float(), server_default='0', nullable=False),
        sa.Column('platform_fee', sa.Float(), server_default='0', nullable=False),
        sa.Column('discount_amount', sa.Float(), server_default='0', nullable=False),
        sa.Column('currency', sa.String(length=3), server_default='INR', nullable=False),
        sa.Column('payment_method', sa.String(length=30), server_default='razorpay', nullable=False),
        sa.Column('payment_gateway', sa.String(length=30), server_default='razorpay', nullable=False),
        sa.Column('gateway_transaction_id', sa.String(length=64), nullable=True),
        sa.Column('gateway_response', sa.JSON(), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('initiated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('failed_at', sa.DateTime(), nullable=True),
        sa.Column('is_reconciled', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('reconciled_at', sa.DateTime(), nullable=True),
        sa.Column('reconciled_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('gross_amount >= 0', name='ck_transaction_gross_non_negative'),
        sa.CheckConstraint('net_amount >= 0', name='ck_transaction_net_non_negative'),
        sa.CheckConstraint(
            'tax_amount >= 0 AND processing_fee >= 0 AND platform_fee >= 0 AND discount_amount >= 0',
            name='ck_transaction_components_non_negative'
        ),
        sa.CheckConstraint('length(currency) = 3', name='ck_transaction_currency_code'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['reconciled_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_id')
    )
    op.create_index(op.f('ix_transaction_logs_transaction_id'), 'transaction_logs', ['transaction_id'], unique=False)
    op.create_index(op.f('ix_transaction_logs_booking_id'), 'transaction_logs', ['booking_id'], unique=False)
    op.create_index(op.f('ix_transaction_logs_user_id'), 'transaction_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_transaction_logs_event_id'), 'transaction_logs', ['event_id'], unique=False)
    op.create_index(op.f('ix_transaction_logs_type'), 'transaction_logs', ['type'], unique=False)
    op.create_index(op.f('ix_transaction_logs_status'), 'transaction_logs', ['status'], unique=False)
    op.create_index(
        op.f('ix_transaction_logs_gateway_transaction_id'), 'transaction_logs', ['gateway_transaction_id'],
        unique=False
    )
    op.create_index(op.f('ix_transaction_logs_is_reconciled'), 'transaction_logs', ['is_reconciled'], unique=False)
    op.create_index(op.f('ix_transaction_logs_created_at'), 'transaction_logs', ['created_at'], unique=False)
    op.create_index('ix_transaction_logs_booking_type', 'transaction_logs', ['booking_id', 'type'], unique=False)

    # Create team_members table
    op.create_table('team_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=100), nullable=False),
        sa.Column('team_type', sa.String(length=20), server_default='Core Team', nullable=False),
        sa.Column('experience', sa.String(length=50), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('specialties', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('social_media', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('"order" >= 0', name='ck_team_member_order_non_negative'),
        sa.CheckConstraint('length(name) > 0', name='ck_team_member_name_not_empty'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_team_members_name'), 'team_members', ['name'], unique=False)
    op.create_index(op.f('ix_team_members_team_type'), 'team_members', ['team_type'], unique=False)
    op.create_index(op.f('ix_team_members_is_active'), 'team_members', ['is_active'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('team_members')
    op.drop_table('transaction_logs')
