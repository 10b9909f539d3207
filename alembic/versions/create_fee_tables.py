"""create club fee tables

Revision ID: 3c7a9e2f41d0
Revises:
Create Date: 2026-10-19 09:12:31

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c7a9e2f41d0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'clubs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('fee_monthly_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('fee_currency', sa.String(length=3), nullable=False),
        sa.Column('fee_active_months', sa.JSON(), nullable=False),
        sa.Column('fee_is_active', sa.Boolean(), nullable=False),
        sa.Column('fee_last_notification_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'members',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('club_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column(
            'approval_status',
            sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='approvalstatus'),
            nullable=False,
        ),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['club_id'], ['clubs.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_members_club_id', 'members', ['club_id'])

    op.create_table(
        'recurring_charges',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('club_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('paid_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('memo', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['club_id'], ['clubs.id']),
        sa.ForeignKeyConstraint(['user_id'], ['members.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('club_id', 'user_id', 'month', 'year', name='uq_recurring_charges_key'),
    )
    op.create_index('ix_recurring_charges_user_id', 'recurring_charges', ['user_id'])

    op.create_table(
        'custom_charges',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('club_id', sa.Uuid(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['club_id'], ['clubs.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_custom_charges_club_id', 'custom_charges', ['club_id'])

    op.create_table(
        'custom_charge_targets',
        sa.Column('charge_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['charge_id'], ['custom_charges.id']),
        sa.ForeignKeyConstraint(['user_id'], ['members.id']),
        sa.PrimaryKeyConstraint('charge_id', 'user_id'),
    )

    op.create_table(
        'custom_charge_payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('charge_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('paid_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('memo', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['charge_id'], ['custom_charges.id']),
        sa.ForeignKeyConstraint(['user_id'], ['members.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('charge_id', 'user_id', name='uq_custom_charge_payments_charge_user'),
    )
    op.create_index('ix_custom_charge_payments_user_id', 'custom_charge_payments', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_custom_charge_payments_user_id', table_name='custom_charge_payments')
    op.drop_table('custom_charge_payments')
    op.drop_table('custom_charge_targets')
    op.drop_index('ix_custom_charges_club_id', table_name='custom_charges')
    op.drop_table('custom_charges')
    op.drop_index('ix_recurring_charges_user_id', table_name='recurring_charges')
    op.drop_table('recurring_charges')
    op.drop_index('ix_members_club_id', table_name='members')
    op.drop_table('members')
    op.drop_table('clubs')
    sa.Enum(name='approvalstatus').drop(op.get_bind(), checkfirst=True)
