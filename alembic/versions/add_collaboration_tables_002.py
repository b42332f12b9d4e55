"""Add collaboration requests, negotiation ledger, timeline, trust ledger, escrow,
conversations and notifications

Revision ID: add_collaboration_tables_002
Revises: create_party_tables_001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = 'add_collaboration_tables_002'
down_revision = 'create_party_tables_001'
branch_labels = None
depends_on = None


REQUEST_STATUSES = (
    'pending', 'viewed', 'negotiating', 'accepted',
    'contract_pending', 'contract_signed', 'payment_pending',
    'in_progress', 'content_submitted', 'revision_requested', 'content_approved',
    'completed', 'declined', 'cancelled',
)
DECLINE_CATEGORIES = ('schedule', 'budget', 'niche', 'brand_fit', 'requirements', 'other', 'system_expired')


def upgrade():
    request_status = sa.Enum(*REQUEST_STATUSES, name='requeststatusdb')
    decline_category = sa.Enum(*DECLINE_CATEGORIES, name='declinecategorydb')
    party_role = sa.Enum('brand', 'creator', 'system', name='partyroledb')

    op.create_table('collaboration_requests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('reference_number', sa.String(32), nullable=False),

        # Parties
        sa.Column('brand_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('creator_id', sa.String(36), sa.ForeignKey('creator_profiles.id'), nullable=False),

        # Content terms
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('content_requirements', sa.Text),
        sa.Column('target_platforms', sa.JSON),
        sa.Column('deliverables', sa.JSON),
        sa.Column('selected_services', sa.JSON),

        # Commercial terms
        sa.Column('proposed_budget', sa.Integer, nullable=False),
        sa.Column('final_budget', sa.Integer, nullable=True),
        sa.Column('currency', sa.String(3), server_default='NGN'),
        sa.Column('proposed_start_date', sa.Date, nullable=False),
        sa.Column('proposed_end_date', sa.Date, nullable=False),

        # Lifecycle
        sa.Column('status', request_status, nullable=False, server_default='pending'),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        sa.Column('expires_at', sa.DateTime, nullable=True),
        sa.Column('responded_at', sa.DateTime),

        # Contract
        sa.Column('brand_signed_at', sa.DateTime),
        sa.Column('creator_signed_at', sa.DateTime),

        # Delivery & review
        sa.Column('revision_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('max_revisions', sa.Integer, nullable=False, server_default='2'),
        sa.Column('revision_notes', sa.Text),
        sa.Column('submitted_content_urls', sa.JSON),
        sa.Column('content_submitted_at', sa.DateTime),
        sa.Column('approved_at', sa.DateTime),
        sa.Column('completed_at', sa.DateTime),

        # Decline
        sa.Column('decline_category', decline_category, nullable=True),
        sa.Column('decline_reason', sa.Text),

        sa.Column('conversation_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),

        sa.CheckConstraint('revision_count <= max_revisions', name='ck_request_revision_cap'),
        sa.CheckConstraint('proposed_start_date <= proposed_end_date', name='ck_request_dates_ordered'),
    )
    op.create_index('ix_collaboration_requests_reference_number', 'collaboration_requests', ['reference_number'], unique=True)
    op.create_index('ix_collaboration_requests_brand_id', 'collaboration_requests', ['brand_id'])
    op.create_index('ix_collaboration_requests_creator_id', 'collaboration_requests', ['creator_id'])
    op.create_index('ix_collaboration_requests_status', 'collaboration_requests', ['status'])

    op.create_table('negotiation_entries',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('collaboration_requests.id'), nullable=False),
        sa.Column('sequence', sa.Integer, nullable=False),
        sa.Column('actor_role', party_role, nullable=False),
        sa.Column('actor_id', sa.String(36), nullable=False),
        sa.Column('amount', sa.Integer, nullable=False),
        sa.Column('message', sa.Text),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('request_id', 'sequence', name='uq_negotiation_sequence'),
    )
    op.create_index('ix_negotiation_entries_request_id', 'negotiation_entries', ['request_id'])

    op.create_table('request_events',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('collaboration_requests.id'), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('from_status', sa.String(30)),
        sa.Column('to_status', sa.String(30), nullable=False),
        sa.Column('actor_role', postgresql.ENUM('brand', 'creator', 'system', name='partyroledb', create_type=False), nullable=False),
        sa.Column('actor_id', sa.String(36)),
        sa.Column('note', sa.Text),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_request_events_request_id', 'request_events', ['request_id'])

    op.create_table('decline_records',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('creator_id', sa.String(36), sa.ForeignKey('creator_profiles.id'), nullable=False),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('collaboration_requests.id'), unique=True, nullable=False),
        sa.Column('category', postgresql.ENUM(*DECLINE_CATEGORIES, name='declinecategorydb', create_type=False), nullable=False),
        sa.Column('reason', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_decline_records_creator_id', 'decline_records', ['creator_id'])
    op.create_index('ix_decline_records_created_at', 'decline_records', ['created_at'])

    op.create_table('escrow_records',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('collaboration_requests.id'), unique=True, nullable=False),
        sa.Column('reference', sa.String(100), nullable=False),
        sa.Column('amount', sa.Integer, nullable=False),
        sa.Column('platform_fee', sa.Integer, nullable=False),
        sa.Column('creator_payout', sa.Integer, nullable=False),
        sa.Column('fee_percent', sa.Float, nullable=False),
        sa.Column('tier', sa.String(20)),
        sa.Column('currency', sa.String(3), server_default='NGN'),
        sa.Column('status', sa.Enum('pending', 'escrow', 'released', 'failed', name='escrowstatusdb'), nullable=False, server_default='pending'),
        sa.Column('escrow_at', sa.DateTime),
        sa.Column('escrow_released_at', sa.DateTime),
        sa.Column('failed_at', sa.DateTime),
        sa.Column('failure_reason', sa.Text),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint('amount = creator_payout + platform_fee', name='ck_escrow_balanced'),
    )
    op.create_index('ix_escrow_records_reference', 'escrow_records', ['reference'], unique=True)

    op.create_table('conversations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('brand_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('creator_id', sa.String(36), sa.ForeignKey('creator_profiles.id'), nullable=False),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('collaboration_requests.id'), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('brand_id', 'creator_id', 'request_id', name='uq_conversation_parties'),
    )

    op.create_table('notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text),
        sa.Column('action_url', sa.String(500)),
        sa.Column('data', sa.JSON),
        sa.Column('is_read', sa.Boolean, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('conversations')
    op.drop_table('escrow_records')
    op.drop_table('decline_records')
    op.drop_table('request_events')
    op.drop_table('negotiation_entries')
    op.drop_table('collaboration_requests')

    op.execute('DROP TYPE IF EXISTS escrowstatusdb')
    op.execute('DROP TYPE IF EXISTS partyroledb')
    op.execute('DROP TYPE IF EXISTS declinecategorydb')
    op.execute('DROP TYPE IF EXISTS requeststatusdb')
