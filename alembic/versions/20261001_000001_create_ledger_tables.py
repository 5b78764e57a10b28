"""Create ledger tables.

Revision ID: 20261001_000001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20261001_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.DECIMAL(18, 2)
RATE = sa.DECIMAL(12, 6)
PERCENT = sa.DECIMAL(7, 4)
JSON = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    """Create accounts, ledger, deposit, request, game and profit share tables."""

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('referral_code', sa.String(32), nullable=False),
        sa.Column('referred_by_id', sa.Integer(), nullable=True),
        sa.Column('ancestors', JSON, nullable=False),
        sa.Column('mlm_level', sa.Integer(), nullable=False),
        sa.Column('normal_balance', MONEY, nullable=False),
        sa.Column('benefit_balance', MONEY, nullable=False),
        sa.Column('game_balance', MONEY, nullable=False),
        sa.Column('withdrawal_balance', MONEY, nullable=False),
        sa.Column('total_deposits', MONEY, nullable=False),
        sa.Column('initial_normal_balance', MONEY, nullable=False),
        sa.Column('initial_benefit_balance', MONEY, nullable=False),
        sa.Column('mlm_earnings_total', MONEY, nullable=False),
        sa.Column('mlm_earnings_daily', MONEY, nullable=False),
        sa.Column('mlm_earnings_level_based', MONEY, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('normal_balance >= 0', name=op.f('ck_accounts_normal_balance_non_negative')),
        sa.CheckConstraint('benefit_balance >= 0', name=op.f('ck_accounts_benefit_balance_non_negative')),
        sa.CheckConstraint('game_balance >= 0', name=op.f('ck_accounts_game_balance_non_negative')),
        sa.CheckConstraint('withdrawal_balance >= 0', name=op.f('ck_accounts_withdrawal_balance_non_negative')),
        sa.CheckConstraint('mlm_level >= 0', name=op.f('ck_accounts_mlm_level_non_negative')),
        sa.ForeignKeyConstraint(['referred_by_id'], ['accounts.id'], name=op.f('fk_accounts_referred_by_id_accounts'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_accounts')),
        sa.UniqueConstraint('username', name=op.f('uq_accounts_username')),
    )
    op.create_index(op.f('ix_accounts_referral_code'), 'accounts', ['referral_code'], unique=True)
    op.create_index(op.f('ix_accounts_referred_by_id'), 'accounts', ['referred_by_id'])

    op.create_table(
        'ledger_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('wallet', sa.String(20), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('kind', sa.String(50), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('related_account_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount <> 0', name=op.f('ck_ledger_entries_amount_non_zero')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], name=op.f('fk_ledger_entries_account_id_accounts'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['related_account_id'], ['accounts.id'], name=op.f('fk_ledger_entries_related_account_id_accounts'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_ledger_entries')),
    )
    op.create_index(op.f('ix_ledger_entries_account_id'), 'ledger_entries', ['account_id'])
    op.create_index(op.f('ix_ledger_entries_status'), 'ledger_entries', ['status'])
    op.create_index('idx_ledger_account_wallet', 'ledger_entries', ['account_id', 'wallet'])
    op.create_index('idx_ledger_kind_created', 'ledger_entries', ['kind', 'created_at'])

    op.create_table(
        'deposits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('principal', MONEY, nullable=False),
        sa.Column('normal_growth_rate', RATE, nullable=False),
        sa.Column('benefit_growth_rate', RATE, nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('day_cap', sa.Integer(), nullable=False),
        sa.Column('days_grown', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_growth_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_normal_growth', MONEY, nullable=False),
        sa.Column('total_benefit_growth', MONEY, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('principal > 0', name=op.f('ck_deposits_principal_positive')),
        sa.CheckConstraint('days_grown >= 0', name=op.f('ck_deposits_days_grown_non_negative')),
        sa.CheckConstraint('days_grown <= day_cap', name=op.f('ck_deposits_days_grown_within_cap')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], name=op.f('fk_deposits_account_id_accounts'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_deposits')),
    )
    op.create_index(op.f('ix_deposits_account_id'), 'deposits', ['account_id'])
    op.create_index('idx_deposit_active', 'deposits', ['is_active'])

    op.create_table(
        'deposit_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('fee_amount', MONEY, nullable=True),
        sa.Column('final_amount', MONEY, nullable=True),
        sa.Column('deposit_id', sa.Integer(), nullable=True),
        sa.Column('rejection_reason', sa.String(500), nullable=True),
        sa.Column('processed_by', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount > 0', name=op.f('ck_deposit_requests_amount_positive')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], name=op.f('fk_deposit_requests_account_id_accounts'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['deposit_id'], ['deposits.id'], name=op.f('fk_deposit_requests_deposit_id_deposits'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_deposit_requests')),
    )
    op.create_index(op.f('ix_deposit_requests_account_id'), 'deposit_requests', ['account_id'])
    op.create_index(op.f('ix_deposit_requests_status'), 'deposit_requests', ['status'])

    op.create_table(
        'withdrawal_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('wallet', sa.String(20), nullable=False),
        sa.Column('method', sa.String(20), nullable=False),
        sa.Column('destination', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('reservation_entry_id', sa.Integer(), nullable=True),
        sa.Column('fee_amount', MONEY, nullable=True),
        sa.Column('final_amount', MONEY, nullable=True),
        sa.Column('remarks', sa.String(500), nullable=True),
        sa.Column('processed_by', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount > 0', name=op.f('ck_withdrawal_requests_amount_positive')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], name=op.f('fk_withdrawal_requests_account_id_accounts'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reservation_entry_id'], ['ledger_entries.id'], name=op.f('fk_withdrawal_requests_reservation_entry_id_ledger_entries'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_withdrawal_requests')),
    )
    op.create_index(op.f('ix_withdrawal_requests_account_id'), 'withdrawal_requests', ['account_id'])
    op.create_index(op.f('ix_withdrawal_requests_status'), 'withdrawal_requests', ['status'])

    op.create_table(
        'game_rooms',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('room_code', sa.String(50), nullable=False),
        sa.Column('game_type', sa.String(20), nullable=False),
        sa.Column('options', JSON, nullable=False),
        sa.Column('option_counts', JSON, nullable=False),
        sa.Column('entry_fee', MONEY, nullable=False),
        sa.Column('fee_split', JSON, nullable=False),
        sa.Column('payout_shape', sa.String(30), nullable=False),
        sa.Column('payout_amount', MONEY, nullable=False),
        sa.Column('payout_multiplier', RATE, nullable=False),
        sa.Column('payout_wallet', sa.String(20), nullable=False),
        sa.Column('return_wallet', sa.String(20), nullable=False),
        sa.Column('max_players', sa.Integer(), nullable=False),
        sa.Column('current_players', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('winning_option', sa.String(20), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('max_players >= 2', name=op.f('ck_game_rooms_max_players_min')),
        sa.CheckConstraint('current_players >= 0 AND current_players <= max_players', name=op.f('ck_game_rooms_current_players_range')),
        sa.CheckConstraint('entry_fee >= 0', name=op.f('ck_game_rooms_entry_fee_non_negative')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_game_rooms')),
    )
    op.create_index(op.f('ix_game_rooms_room_code'), 'game_rooms', ['room_code'], unique=True)
    op.create_index(op.f('ix_game_rooms_game_type'), 'game_rooms', ['game_type'])
    op.create_index(op.f('ix_game_rooms_status'), 'game_rooms', ['status'])

    op.create_table(
        'game_players',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('option', sa.String(20), nullable=False),
        sa.Column('entry_amount', MONEY, nullable=False),
        sa.Column('paid', JSON, nullable=False),
        sa.Column('has_won', sa.Boolean(), nullable=False),
        sa.Column('amount_won', MONEY, nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['game_rooms.id'], name=op.f('fk_game_players_room_id_game_rooms'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], name=op.f('fk_game_players_account_id_accounts'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_game_players')),
    )
    op.create_index(op.f('ix_game_players_room_id'), 'game_players', ['room_id'])
    op.create_index(op.f('ix_game_players_account_id'), 'game_players', ['account_id'])

    op.create_table(
        'profit_shares',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('source_account_id', sa.Integer(), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('share_type', sa.String(40), nullable=False),
        sa.Column('percentage', PERCENT, nullable=False),
        sa.Column('source_amount', MONEY, nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('wallet', sa.String(20), nullable=False),
        sa.Column('ledger_entry_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], name=op.f('fk_profit_shares_account_id_accounts'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_account_id'], ['accounts.id'], name=op.f('fk_profit_shares_source_account_id_accounts'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['ledger_entry_id'], ['ledger_entries.id'], name=op.f('fk_profit_shares_ledger_entry_id_ledger_entries'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_profit_shares')),
    )
    op.create_index(op.f('ix_profit_shares_account_id'), 'profit_shares', ['account_id'])
    op.create_index(op.f('ix_profit_shares_source_account_id'), 'profit_shares', ['source_account_id'])
    op.create_index('idx_profit_share_receiver_type', 'profit_shares', ['account_id', 'share_type'])


def downgrade() -> None:
    """Drop ledger tables."""
    op.drop_table('profit_shares')
    op.drop_table('game_players')
    op.drop_table('game_rooms')
    op.drop_table('withdrawal_requests')
    op.drop_table('deposit_requests')
    op.drop_table('deposits')
    op.drop_table('ledger_entries')
    op.drop_table('accounts')
