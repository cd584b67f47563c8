"""create_access_control_tables

Revision ID: 5b2d81c4e7a0
Revises:
Create Date: 2026-10-19 09:12:44.318021

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b2d81c4e7a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create workspaces, members, invitations, dashboards and share grants."""
    op.create_table('workspaces',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    # Members keyed by (workspace_id, email); identities live outside this service
    op.create_table('workspace_members',
        sa.Column('workspace_id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='viewer'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.Column('invited_by', sa.String(length=255), nullable=True),
        sa.CheckConstraint("role IN ('owner', 'admin', 'analyst', 'viewer')", name='ck_workspace_members_role'),
        sa.CheckConstraint("status IN ('active', 'pending', 'inactive')", name='ck_workspace_members_status'),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('workspace_id', 'email'),
    )
    op.create_index('ix_workspace_members_email', 'workspace_members', ['email'], unique=False)
    # At most one owner per workspace
    op.create_index(
        'uq_workspace_members_single_owner',
        'workspace_members',
        ['workspace_id'],
        unique=True,
        postgresql_where=sa.text("role = 'owner'"),
    )

    op.create_table('invitations',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('workspace_id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='viewer'),
        sa.Column('invited_by', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('last_sent_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("role IN ('admin', 'analyst', 'viewer')", name='ck_invitations_role'),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'revoked', 'expired')",
            name='ck_invitations_status',
        ),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_invitations_workspace_email', 'invitations', ['workspace_id', 'email'], unique=False)
    op.create_index('ix_invitations_email_status', 'invitations', ['email', 'status'], unique=False)

    op.create_table('dashboards',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('workspace_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('visibility', sa.String(length=20), nullable=False, server_default='private'),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("visibility IN ('private', 'public')", name='ck_dashboards_visibility'),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_dashboards_workspace_id', 'dashboards', ['workspace_id'], unique=False)

    # Grants are independent of membership: no FK to workspace_members
    op.create_table('dashboard_share_grants',
        sa.Column('dashboard_id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('permission', sa.String(length=10), nullable=False, server_default='view'),
        sa.Column('granted_by', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("permission IN ('view', 'edit')", name='ck_dashboard_share_grants_permission'),
        sa.ForeignKeyConstraint(['dashboard_id'], ['dashboards.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('dashboard_id', 'email'),
    )
    op.create_index('ix_dashboard_share_grants_email', 'dashboard_share_grants', ['email'], unique=False)


def downgrade() -> None:
    """Drop all access-control tables."""
    op.drop_index('ix_dashboard_share_grants_email', table_name='dashboard_share_grants')
    op.drop_table('dashboard_share_grants')
    op.drop_index('ix_dashboards_workspace_id', table_name='dashboards')
    op.drop_table('dashboards')
    op.drop_index('ix_invitations_email_status', table_name='invitations')
    op.drop_index('ix_invitations_workspace_email', table_name='invitations')
    op.drop_table('invitations')
    op.drop_index('uq_workspace_members_single_owner', table_name='workspace_members')
    op.drop_index('ix_workspace_members_email', table_name='workspace_members')
    op.drop_table('workspace_members')
    op.drop_table('workspaces')
