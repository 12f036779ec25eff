"""gate pass initial schema

Revision ID: 20261019_gatepass_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the gate pass schema from scratch:
- users / session_tokens: email login and bearer sessions
- destinations: reference data for where items are sent
- gate_passes / gate_pass_items: the pass documents and their lines
- pass_sequences: atomic per-day pass number counters
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_gatepass_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users / session_tokens
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_session_tokens_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sa.UniqueConstraint('token_hash', name='uq_session_tokens_token_hash'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'])
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # destinations
    # ============================================================================
    op.create_table(
        'destinations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id', name='pk_destinations'),
        sa.UniqueConstraint('code', name='uq_destinations_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_destinations_code', 'destinations', ['code'])

    # ============================================================================
    # gate_passes / gate_pass_items
    # ============================================================================
    # id is the client-generated string id; gatepass_no is unique so a
    # duplicate number can never be stored even if allocation is bypassed.
    op.create_table(
        'gate_passes',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('gatepass_no', sa.String(length=64), nullable=False),
        sa.Column('pass_date', sa.Date(), nullable=False),
        sa.Column('destination_code', sa.String(length=128), nullable=False),
        sa.Column('destination_id', sa.Integer(), nullable=True),
        sa.Column('carried_by', sa.String(length=128), nullable=True),
        sa.Column('through', sa.String(length=64), nullable=True),
        sa.Column('mobile_no', sa.String(length=32), nullable=True),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('returnable', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('modified_by', sa.String(length=255), nullable=True),
        sa.Column('modified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id', name='pk_gate_passes'),
        sa.UniqueConstraint('gatepass_no', name='uq_gate_passes_gatepass_no'),
    )
    op.create_index('ix_gate_passes_pass_date', 'gate_passes', ['pass_date'])
    op.create_index('ix_gate_passes_enabled_created', 'gate_passes', ['is_enabled', 'created_at'])

    op.create_table(
        'gate_pass_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gate_pass_id', sa.String(length=64), nullable=False),
        sa.Column('sl_no', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('make', sa.String(length=500), nullable=False),
        sa.Column('model', sa.String(length=500), nullable=False),
        sa.Column('serial_no', sa.String(length=500), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['gate_pass_id'], ['gate_passes.id'],
                                name='fk_gate_pass_items_gate_pass_id_gate_passes', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_gate_pass_items'),
        sa.UniqueConstraint('gate_pass_id', 'sl_no', name='uq_gate_pass_items_pass_slno'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_gate_pass_items_gate_pass_id', 'gate_pass_items', ['gate_pass_id'])

    # ============================================================================
    # pass_sequences: one row per day key (DDMMYYYY)
    # ============================================================================
    op.create_table(
        'pass_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('day_key', sa.String(length=8), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id', name='pk_pass_sequences'),
        sa.UniqueConstraint('day_key', name='uq_pass_sequences_day_key'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_pass_sequences_day_key', 'pass_sequences', ['day_key'])


def downgrade():
    op.drop_index('ix_pass_sequences_day_key', table_name='pass_sequences')
    op.drop_table('pass_sequences')

    op.drop_index('ix_gate_pass_items_gate_pass_id', table_name='gate_pass_items')
    op.drop_table('gate_pass_items')

    op.drop_index('ix_gate_passes_enabled_created', table_name='gate_passes')
    op.drop_index('ix_gate_passes_pass_date', table_name='gate_passes')
    op.drop_table('gate_passes')

    op.drop_index('ix_destinations_code', table_name='destinations')
    op.drop_table('destinations')

    op.drop_index('ix_session_tokens_user_active', table_name='session_tokens')
    op.drop_index('ix_session_tokens_is_revoked', table_name='session_tokens')
    op.drop_index('ix_session_tokens_expires_at', table_name='session_tokens')
    op.drop_index('ix_session_tokens_token_hash', table_name='session_tokens')
    op.drop_index('ix_session_tokens_user_id', table_name='session_tokens')
    op.drop_table('session_tokens')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
