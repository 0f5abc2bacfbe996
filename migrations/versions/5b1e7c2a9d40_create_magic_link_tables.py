"""create_magic_link_tables

Revision ID: 5b1e7c2a9d40
Revises:
Create Date: 2026-10-17 09:12:44.318207

"""
import uuid
from datetime import datetime
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5b1e7c2a9d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create onboarding, organization, user, invite and waitlist tables."""
    onboarding_types = op.create_table('onboarding_types',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table('organizations',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('onboarding_type_id', sa.UUID(), nullable=True),
        sa.Column('settings', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['onboarding_type_id'], ['onboarding_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    op.create_table('users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('org_id', sa.UUID(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('preferences', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('role_id IN (1, 2)', name='ck_users_role'),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_org_id', 'users', ['org_id'], unique=False)

    op.create_table('invites',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('url_slug', sa.String(length=32), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('max_uses', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('current_uses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('purpose', sa.String(length=30), nullable=False, server_default='invite'),
        sa.Column('sent_by_user_id', sa.UUID(), nullable=True),
        sa.Column('ua_hash', sa.String(length=16), nullable=True),
        sa.Column('ip_prefix', sa.String(length=64), nullable=True),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('used_ua_hash', sa.String(length=16), nullable=True),
        sa.Column('used_ip_prefix', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('current_uses >= 0', name='ck_invites_current_uses'),
        sa.CheckConstraint('current_uses <= max_uses', name='ck_invites_usage_limit'),
        sa.CheckConstraint(
            "purpose IN ('invite', 'waitlist_approval', 'resend', 'admin_created')",
            name='ck_invites_purpose',
        ),
        sa.ForeignKeyConstraint(['sent_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_hash'),
        sa.UniqueConstraint('url_slug'),
    )
    # Resend and admin search look invites up by email, newest first
    op.create_index('ix_invites_email_created', 'invites', ['email', 'created_at'], unique=False)

    op.create_table('waitlist',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('organization_name', sa.String(length=255), nullable=True),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('interest_reason', sa.Text(), nullable=True),
        sa.Column('use_case', sa.Text(), nullable=True),
        sa.Column('feedback_importance', sa.Integer(), nullable=True),
        sa.Column('subscribe_newsletter', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('invite_id', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='ck_waitlist_status'),
        sa.CheckConstraint(
            'feedback_importance IS NULL OR (feedback_importance BETWEEN 1 AND 10)',
            name='ck_waitlist_feedback_importance',
        ),
        sa.ForeignKeyConstraint(['invite_id'], ['invites.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_waitlist_email'),
    )
    op.create_index('ix_waitlist_status', 'waitlist', ['status'], unique=False)

    op.bulk_insert(onboarding_types, [
        {'id': uuid.uuid4(), 'name': 'Magic Link', 'created_at': datetime.utcnow()},
    ])


def downgrade() -> None:
    """Drop magic-link tables."""
    op.drop_index('ix_waitlist_status', table_name='waitlist')
    op.drop_table('waitlist')
    op.drop_index('ix_invites_email_created', table_name='invites')
    op.drop_table('invites')
    op.drop_index('ix_users_org_id', table_name='users')
    op.drop_table('users')
    op.drop_table('organizations')
    op.drop_table('onboarding_types')
