"""Create users, creator profiles, availability slots and rate cards

Revision ID: create_party_tables_001
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = 'create_party_tables_001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('user_type', sa.Enum('brand', 'creator', 'admin', name='usertype'), nullable=False, server_default='brand'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('creator_profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('tier', sa.Enum('nano', 'micro', 'mid', 'macro', 'mega', name='creatortier'), nullable=False, server_default='nano'),

        # Availability
        sa.Column('is_available', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('lead_time_days', sa.Integer, nullable=False, server_default='3'),

        # Trust / suspension
        sa.Column('suspended_until', sa.DateTime, nullable=True),
        sa.Column('suspension_count', sa.Integer, nullable=False, server_default='0'),

        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint('lead_time_days >= 0', name='ck_creator_lead_time_non_negative'),
    )

    op.create_table('availability_slots',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('creator_id', sa.String(36), sa.ForeignKey('creator_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('reason', sa.String(255)),
        sa.Column('slot_type', sa.Enum('blocked', 'booked', name='slottype'), nullable=False, server_default='blocked'),
        sa.Column('request_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint('start_date <= end_date', name='ck_slot_range_ordered'),
    )
    op.create_index('ix_availability_slots_creator_id', 'availability_slots', ['creator_id'])

    op.create_table('rate_cards',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('creator_id', sa.String(36), sa.ForeignKey('creator_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('platform', sa.String(50), nullable=False),
        sa.Column('content_type', sa.String(50), nullable=False),
        sa.Column('price', sa.Integer, nullable=False),
        sa.Column('currency', sa.String(3), server_default='NGN'),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )


def downgrade():
    op.drop_table('rate_cards')
    op.drop_index('ix_availability_slots_creator_id', table_name='availability_slots')
    op.drop_table('availability_slots')
    op.drop_table('creator_profiles')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    op.execute('DROP TYPE IF EXISTS slottype')
    op.execute('DROP TYPE IF EXISTS creatortier')
    op.execute('DROP TYPE IF EXISTS usertype')
