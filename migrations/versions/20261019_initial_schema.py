"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(120), nullable=True),
        sa.Column('last_name', sa.String(120), nullable=True),
        sa.Column('deceased_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deceased_confirmed_by', sa.Uuid, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # Create contacts table
    op.create_table(
        'contacts',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('owner_id', sa.Uuid, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('relationship_label', sa.String(100), nullable=True),
        sa.Column('contact_type', sa.String(32), nullable=False, server_default='regular'),
        sa.Column('role', sa.String(32), nullable=True),
        sa.Column('is_primary', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('invitation_status', sa.String(32), nullable=False, server_default='pending_confirmation'),
        sa.Column('target_user_id', sa.Uuid, nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        sa.UniqueConstraint('owner_id', 'email', name='uq_owner_contact_email'),
        sa.CheckConstraint(
            "(contact_type = 'trusted' AND role IS NOT NULL) OR "
            "(contact_type = 'regular' AND role IS NULL)",
            name='ck_contacts_trusted_role',
        ),
    )
    op.create_index('ix_contacts_owner_id', 'contacts', ['owner_id'])
    op.create_index('ix_contacts_email', 'contacts', ['email'])
    op.create_index('ix_contacts_invitation_status', 'contacts', ['invitation_status'])
    op.create_index('ix_contacts_target_user_id', 'contacts', ['target_user_id'])
    op.create_index(
        'uq_contacts_primary_per_type',
        'contacts',
        ['owner_id', 'contact_type'],
        unique=True,
        postgresql_where=sa.text('is_primary'),
    )

    # Create videos table
    op.create_table(
        'videos',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('owner_id', sa.Uuid, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('storage_path', sa.String(1024), nullable=False),
        sa.Column('visibility', sa.String(32), nullable=False, server_default='private'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('ix_videos_owner_id', 'videos', ['owner_id'])
    op.create_index('ix_videos_visibility', 'videos', ['visibility'])

    # Create video_shares table
    op.create_table(
        'video_shares',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('video_id', sa.Uuid, sa.ForeignKey('videos.id', ondelete='CASCADE'), nullable=False),
        sa.Column('owner_id', sa.Uuid, nullable=False),
        sa.Column('recipient_email', sa.String(255), nullable=False),
        sa.Column('recipient_id', sa.Uuid, nullable=True),
        sa.Column('share_type', sa.String(32), nullable=False, server_default='direct'),
        sa.Column('confirmation_id', sa.Uuid, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        sa.UniqueConstraint('video_id', 'recipient_email', name='uq_video_share_recipient'),
    )
    op.create_index('ix_video_shares_video_id', 'video_shares', ['video_id'])
    op.create_index('ix_video_shares_owner_id', 'video_shares', ['owner_id'])
    op.create_index('ix_video_shares_recipient_email', 'video_shares', ['recipient_email'])
    op.create_index('ix_video_shares_recipient_id', 'video_shares', ['recipient_id'])

    # Create deceased_confirmations table (audit trail, no FK on target)
    op.create_table(
        'deceased_confirmations',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('target_owner_id', sa.Uuid, nullable=False),
        sa.Column('caller_id', sa.Uuid, nullable=False),
        sa.Column('outcome', sa.String(32), nullable=False),
        sa.Column('verification_method', sa.String(32), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('detail', sa.String(255), nullable=True),
        sa.Column('shares_granted', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_deceased_confirmations_target_owner_id', 'deceased_confirmations', ['target_owner_id'])
    op.create_index('ix_deceased_confirmations_caller_id', 'deceased_confirmations', ['caller_id'])

    # Create notifications table
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('user_id', sa.Uuid, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('data', sa.JSON, nullable=True),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])

    # Create admin_users table
    op.create_table(
        'admin_users',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('user_id', sa.Uuid, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('admin_users')
    op.drop_table('notifications')
    op.drop_table('deceased_confirmations')
    op.drop_table('video_shares')
    op.drop_table('videos')
    op.drop_table('contacts')
    op.drop_table('users')
