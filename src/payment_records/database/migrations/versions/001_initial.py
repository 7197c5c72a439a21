"""Initial migration - create payment, refund, capture, void session and configuration tables

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create payment_sessions table
    op.create_table(
        'payment_sessions',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('gid', sa.String(255), nullable=True),
        sa.Column('group', sa.String(255), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('test', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('kind', sa.String(50), nullable=True),
        sa.Column('cancel_url', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('payment_method_json', sa.Text(), nullable=True),
        sa.Column('customer_json', sa.Text(), nullable=True),
        sa.Column('proposed_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_payment_sessions_proposed_at', 'payment_sessions', ['proposed_at'])
    op.create_index('ix_payment_sessions_status', 'payment_sessions', ['status'])

    # Refunds and captures share a shape
    for table in ('refund_sessions', 'capture_sessions'):
        op.create_table(
            table,
            sa.Column('id', sa.String(255), primary_key=True),
            sa.Column('gid', sa.String(255), nullable=True),
            sa.Column('payment_id', sa.String(255), sa.ForeignKey('payment_sessions.id'), nullable=False),
            sa.Column('amount', sa.Float(), nullable=False),
            sa.Column('currency', sa.String(3), nullable=True),
            sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
            sa.Column('proposed_at', sa.DateTime(), nullable=False),
        )
        op.create_index(f'ix_{table}_payment_id', table, ['payment_id'])

    # Create void_sessions table, one per payment
    op.create_table(
        'void_sessions',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('gid', sa.String(255), nullable=True),
        sa.Column('payment_id', sa.String(255), sa.ForeignKey('payment_sessions.id'), nullable=False, unique=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('proposed_at', sa.DateTime(), nullable=False),
    )

    # Create configurations table
    op.create_table(
        'configurations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('session_id', sa.String(255), sa.ForeignKey('payment_sessions.id'), nullable=False, unique=True),
        sa.Column('settings_json', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('configurations')
    op.drop_table('void_sessions')

    for table in ('capture_sessions', 'refund_sessions'):
        op.drop_index(f'ix_{table}_payment_id', table_name=table)
        op.drop_table(table)

    op.drop_index('ix_payment_sessions_status', table_name='payment_sessions')
    op.drop_index('ix_payment_sessions_proposed_at', table_name='payment_sessions')
    op.drop_table('payment_sessions')
