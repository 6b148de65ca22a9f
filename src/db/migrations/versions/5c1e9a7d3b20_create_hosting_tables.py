"""create users, files and payments tables

Revision ID: 5c1e9a7d3b20
Revises:
Create Date: 2026-10-19 10:12:44.318201

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1e9a7d3b20'
down_revision = None
branch_labels = None
depends_on = None

plan_tier = sa.Enum('free', 'basic', 'premium', name='plantier')
payment_status = sa.Enum('pending', 'completed', 'failed', 'under_review', name='paymentstatus')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('plan', plan_tier, nullable=False),
        sa.Column('storage_used', sa.Float(), nullable=False),
        sa.Column('storage_limit', sa.Float(), nullable=False),
        sa.Column('plan_expiry', sa.DateTime(), nullable=False),
        sa.Column('total_files', sa.Integer(), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('is_protected', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_plan', 'users', ['plan'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'files',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stored_name', sa.String(length=512), nullable=False),
        sa.Column('original_name', sa.String(length=512), nullable=False),
        sa.Column('size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('content_type', sa.String(length=255), nullable=False),
        sa.Column('storage_path', sa.String(length=1024), nullable=False),
        sa.Column('public_url', sa.String(length=1024), nullable=False),
        sa.Column('download_count', sa.Integer(), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_files_id', 'files', ['id'])
    op.create_index('ix_files_owner_id', 'files', ['owner_id'])
    op.create_index('ix_files_created_at', 'files', ['created_at'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan', plan_tier, nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', payment_status, nullable=False),
        sa.Column('upi_id', sa.String(length=255), nullable=True),
        sa.Column('transaction_id', sa.String(length=255), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('verified_by', sa.String(length=64), nullable=True),
        sa.Column('review_note', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_payments_id', 'payments', ['id'])
    op.create_index('ix_payments_owner_id', 'payments', ['owner_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_created_at', 'payments', ['created_at'])


def downgrade() -> None:
    op.drop_table('payments')
    op.drop_table('files')
    op.drop_table('users')
    payment_status.drop(op.get_bind(), checkfirst=True)
    plan_tier.drop(op.get_bind(), checkfirst=True)
