"""Initial database schema

Revision ID: 0001
Revises:
Create Date: 2025-08-02 12:30:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _uuid_pk() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    # Create users table
    op.create_table('users',
        _uuid_pk(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), server_default='USER', nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('avatar', sa.String(length=500), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('address', sa.JSON(), nullable=True),
        sa.Column('emergency_contact', sa.JSON(), nullable=True),
        sa.Column('preferences', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('is_banned', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('ban_reason', sa.Text(), nullable=True),
        sa.Column('banned_at', sa.DateTime(), nullable=True),
        sa.Column('password_reset_required', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('otp_hash', sa.String(length=255), nullable=True),
        sa.Column('otp_expires_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('length(name) > 0', name='ck_user_name_not_empty'),
        sa.CheckConstraint('length(email) > 0', name='ck_user_email_not_empty'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)

    # Create events table
    op.create_table('events',
        _uuid_pk(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=220), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('short_description', sa.String(length=300), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('discounted_price', sa.Float(), nullable=True),
        sa.Column('duration', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('difficulty', sa.String(length=20), nullable=False),
        sa.Column('location', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('images', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('inclusions', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('exclusions', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('highlights', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('things_to_carry', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('tags', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('brochure', sa.String(length=500), nullable=True),
        sa.Column('max_participants', sa.Integer(), server_default='20', nullable=False),
        sa.Column('min_participants', sa.Integer(), server_default='1', nullable=False),
        sa.Column('available_dates', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('departures', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('itinerary', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('price >= 0', name='ck_event_price_non_negative'),
        sa.CheckConstraint('min_participants >= 1', name='ck_event_min_participants_positive'),
        sa.CheckConstraint('length(title) > 0', name='ck_event_title_not_empty'),
        sa.CheckConstraint('length(slug) > 0', name='ck_event_slug_not_empty'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )
    op.create_index(op.f('ix_events_slug'), 'events', ['slug'], unique=False)
    op.create_index(op.f('ix_events_category'), 'events', ['category'], unique=False)
    op.create_index(op.f('ix_events_difficulty'), 'events', ['difficulty'], unique=False)
    op.create_index(op.f('ix_events_is_active'), 'events', ['is_active'], unique=False)

    # Create wishlist association table
    op.create_table('user_wishlist',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'event_id')
    )

    # Create bookings table
    op.create_table('bookings',
        _uuid_pk(),
        sa.Column('reference', sa.String(length=32), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('travel_date', sa.Date(), nullable=False),
        sa.Column('selected_month', sa.String(length=20), nullable=True),
        sa.Column('selected_year', sa.Integer(), nullable=True),
        sa.Column('selected_departure', sa.String(length=200), nullable=True),
        sa.Column('selected_transport_mode', sa.String(length=20), nullable=True),
        sa.Column('participants', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('discount_amount', sa.Float(), server_default='0', nullable=False),
        sa.Column('final_amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='PENDING', nullable=False),
        sa.Column('payment_method', sa.String(length=30), nullable=True),
        sa.Column('payment_status', sa.String(length=20), server_default='PENDING', nullable=False),
        sa.Column('razorpay_order_id', sa.String(length=64), nullable=True),
        sa.Column('razorpay_payment_id', sa.String(length=64), nullable=True),
        sa.Column('transaction_id', sa.String(length=64), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('refund_id', sa.String(length=64), nullable=True),
        sa.Column('refund_amount', sa.Float(), nullable=True),
        sa.Column('refunded_at', sa.DateTime(), nullable=True),
        sa.Column('failure_reason', sa.Text(), nullable=True),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('seats_reserved', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
        sa.CheckConstraint('total_amount >= 0', name='ck_booking_total_non_negative'),
        sa.CheckConstraint('final_amount >= 0', name='ck_booking_final_non_negative'),
        sa.CheckConstraint('seats_reserved >= 0', name='ck_booking_seats_reserved_non_negative'),
        sa.CheckConstraint('length(reference) > 0', name='ck_booking_reference_not_empty'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference')
    )
    op.create_index(op.f('ix_bookings_reference'), 'bookings', ['reference'], unique=False)
    op.create_index(op.f('ix_bookings_user_id'), 'bookings', ['user_id'], unique=False)
    op.create_index(op.f('ix_bookings_event_id'), 'bookings', ['event_id'], unique=False)
    op.create_index(op.f('ix_bookings_travel_date'), 'bookings', ['travel_date'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(op.f('ix_bookings_payment_status'), 'bookings', ['payment_status'], unique=False)
    op.create_index(op.f('ix_bookings_razorpay_order_id'), 'bookings', ['razorpay_order_id'], unique=False)

    # Create testimonials table
    op.create_table('testimonials',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('booking_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('customer_name', sa.String(length=100), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('event_name', sa.String(length=200), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('review', sa.Text(), nullable=False),
        sa.Column('images', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('approved', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_public', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('admin_response', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_testimonial_rating_range'),
        sa.CheckConstraint('length(review) > 0', name='ck_testimonial_review_not_empty'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'event_id', name='uq_testimonial_user_event')
    )
    op.create_index(op.f('ix_testimonials_user_id'), 'testimonials', ['user_id'], unique=False)
    op.create_index(op.f('ix_testimonials_event_id'), 'testimonials', ['event_id'], unique=False)
    op.create_index(op.f('ix_testimonials_approved'), 'testimonials', ['approved'], unique=False)

    # Create stories table
    op.create_table('stories',
        _uuid_pk(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=220), nullable=False),
        sa.Column('excerpt', sa.String(length=500), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('cover_image', sa.String(length=500), nullable=True),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('tags', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column('author_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_published', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('read_time', sa.Integer(), server_default='1', nullable=False),
        sa.Column('views', sa.Integer(), server_default='0', nullable=False),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('views >= 0', name='ck_story_views_non_negative'),
        sa.CheckConstraint('length(slug) > 0', name='ck_story_slug_not_empty'),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )
    op.create_index(op.f('ix_stories_slug'), 'stories', ['slug'], unique=False)
    op.create_index(op.f('ix_stories_category'), 'stories', ['category'], unique=False)
    op.create_index(op.f('ix_stories_is_published'), 'stories', ['is_published'], unique=False)

    # Create site_settings table
    op.create_table('site_settings',
        _uuid_pk(),
        sa.Column('site_name', sa.String(length=100), nullable=False),
        sa.Column('site_url', sa.String(length=255), nullable=True),
        sa.Column('branding', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('contact', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('seo', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('payment', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('booking', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('features', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('version', sa.String(length=20), server_default='1.0.0', nullable=False),
        sa.Column('last_updated_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['last_updated_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'uq_site_settings_active', 'site_settings', ['is_active'],
        unique=True, postgresql_where=sa.text('is_active')
    )

    # Create admin_audit_logs table
    op.create_table('admin_audit_logs',
        _uuid_pk(),
        sa.Column('admin_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('admin_email', sa.String(length=255), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('target_type', sa.String(length=50), nullable=False),
        sa.Column('target_id', sa.String(length=64), nullable=False),
        sa.Column('details', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(action) > 0', name='ck_audit_action_not_empty'),
        sa.CheckConstraint('length(admin_email) > 0', name='ck_audit_admin_email_not_empty'),
        sa.ForeignKeyConstraint(['admin_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_admin_audit_logs_admin_id'), 'admin_audit_logs', ['admin_id'], unique=False)
    op.create_index(op.f('ix_admin_audit_logs_action'), 'admin_audit_logs', ['action'], unique=False)
    op.create_index(op.f('ix_admin_audit_logs_target_id'), 'admin_audit_logs', ['target_id'], unique=False)
    op.create_index(op.f('ix_admin_audit_logs_created_at'), 'admin_audit_logs', ['created_at'], unique=False)

    # Create idempotency_records table
    op.create_table('idempotency_records',
        _uuid_pk(),
        sa.Column('idempotency_key', sa.String(length=255), nullable=False),
        sa.Column('operation', sa.String(length=100), nullable=False),
        sa.Column('request_body_hash', sa.String(length=64), nullable=False),
        sa.Column('response_status_code', sa.Integer(), nullable=False),
        sa.Column('response_body', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(idempotency_key) > 0', name='ck_idempotency_key_not_empty'),
        sa.CheckConstraint('length(request_body_hash) = 64', name='ck_idempotency_hash_length'),
        sa.CheckConstraint(
            'response_status_code >= 100 AND response_status_code <= 599',
            name='ck_idempotency_status_code_valid'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key', 'operation', name='uq_idempotency_key_operation')
    )
    op.create_index(op.f('ix_idempotency_records_idempotency_key'), 'idempotency_records', ['idempotency_key'], unique=False)
    op.create_index(op.f('ix_idempotency_records_operation'), 'idempotency_records', ['operation'], unique=False)
    op.create_index(op.f('ix_idempotency_records_expires_at'), 'idempotency_records', ['expires_at'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('idempotency_records')
    op.drop_table('admin_audit_logs')
    op.drop_index('uq_site_settings_active', table_name='site_settings')
    op.drop_table('site_settings')
    op.drop_table('stories')
    op.drop_table('testimonials')
    op.drop_table('bookings')
    op.drop_table('user_wishlist')
    op.drop_table('events')
    op.drop_table('users')
