"""create users, subscriptions and paddle billing tables

Revision ID: 3c1f8e2a9d47
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f8e2a9d47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create billing tables with indices."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('plan_tier', sa.String(length=20), nullable=False, server_default='FREE', comment='FREE|PRO|TEAM'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('paddle_subscription_id', sa.String(length=255), nullable=False),
        sa.Column('paddle_customer_id', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, comment='ACTIVE|CANCELED|PAST_DUE|TRIALING|INACTIVE'),
        sa.Column('plan_id', sa.String(length=255), nullable=True, comment='Paddle price id (pri_xxx)'),
        sa.Column('current_period_end', sa.DateTime(), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_subscriptions_id'), 'subscriptions', ['id'], unique=False)
    op.create_index(op.f('ix_subscriptions_user_id'), 'subscriptions', ['user_id'], unique=False)
    op.create_index(op.f('ix_subscriptions_paddle_subscription_id'), 'subscriptions', ['paddle_subscription_id'], unique=True)
    op.create_index(op.f('ix_subscriptions_paddle_customer_id'), 'subscriptions', ['paddle_customer_id'], unique=False)

    op.create_table(
        'paddle_events',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('event_id', sa.String(length=255), nullable=True, comment='evt_xxx from Paddle'),
        sa.Column('event_type', sa.String(length=100), nullable=False, comment='subscription.created|subscription.updated|etc'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='processed|skipped|failed|ignored'),
        sa.Column('subscription_id', sa.String(length=255), nullable=True, comment='sub_xxx from Paddle'),
        sa.Column('transaction_id', sa.String(length=255), nullable=True, comment='txn_xxx from Paddle'),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('payload', sa.Text(), nullable=True, comment='raw request body'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_paddle_events_id'), 'paddle_events', ['id'], unique=False)
    op.create_index(op.f('ix_paddle_events_event_id'), 'paddle_events', ['event_id'], unique=True)
    op.create_index(op.f('ix_paddle_events_event_type'), 'paddle_events', ['event_type'], unique=False)
    op.create_index(op.f('ix_paddle_events_status'), 'paddle_events', ['status'], unique=False)
    op.create_index(op.f('ix_paddle_events_user_id'), 'paddle_events', ['user_id'], unique=False)
    op.create_index(op.f('ix_paddle_events_created_at'), 'paddle_events', ['created_at'], unique=False)

    op.create_table(
        'paddle_transactions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('transaction_id', sa.String(length=255), nullable=False),
        sa.Column('subscription_id', sa.String(length=255), nullable=True),
        sa.Column('customer_id', sa.String(length=255), nullable=True),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, comment='completed|payment_failed'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_paddle_transactions_id'), 'paddle_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_paddle_transactions_transaction_id'), 'paddle_transactions', ['transaction_id'], unique=True)
    op.create_index(op.f('ix_paddle_transactions_subscription_id'), 'paddle_transactions', ['subscription_id'], unique=False)
    op.create_index(op.f('ix_paddle_transactions_user_id'), 'paddle_transactions', ['user_id'], unique=False)

    op.create_table(
        'email_logs',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('transaction_id', sa.String(length=64), nullable=True),
        sa.Column('recipient_email', sa.String(length=255), nullable=False),
        sa.Column('recipient_user_id', sa.String(length=64), nullable=True),
        sa.Column('email_type', sa.String(length=50), nullable=False, comment='payment_failed'),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, comment='sent|failed|skipped'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['recipient_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_email_logs_transaction_id'), 'email_logs', ['transaction_id'], unique=False)
    op.create_index(op.f('ix_email_logs_recipient_user_id'), 'email_logs', ['recipient_user_id'], unique=False)


def downgrade() -> None:
    """Drop billing tables."""
    op.drop_table('email_logs')
    op.drop_table('paddle_transactions')
    op.drop_table('paddle_events')
    op.drop_table('subscriptions')
    op.drop_table('users')
