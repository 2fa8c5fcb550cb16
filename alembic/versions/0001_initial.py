"""Gateway tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16

Creates:
- tenants: Gateway clients (client credentials + settings)
- whatsapp_sessions: One WhatsApp connection per tenant + phone number
- whatsapp_messages: All inbound/outbound messages
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # =========================================================================
    # TENANTS
    # =========================================================================

    op.create_table(
        'tenants',
        sa.Column('id', UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('client_id', sa.String(100), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('client_secret_hash', sa.Text(), nullable=True),
        sa.Column('settings', JSONB(), server_default='{}', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenants_client_id', 'tenants', ['client_id'], unique=True)

    # =========================================================================
    # WHATSAPP SESSIONS
    # =========================================================================

    op.create_table(
        'whatsapp_sessions',
        sa.Column('id', UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=False),
        sa.Column('provider_type', sa.String(20), server_default='baileys', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('session_data', JSONB(), server_default='{}', nullable=False),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('tenant_id', 'phone_number', name='uq_whatsapp_sessions_tenant_phone')
    )
    op.create_index('ix_whatsapp_sessions_tenant_id', 'whatsapp_sessions', ['tenant_id'])
    op.create_index('idx_whatsapp_sessions_tenant_active', 'whatsapp_sessions', ['tenant_id', 'is_active'])

    # =========================================================================
    # WHATSAPP MESSAGES
    # =========================================================================

    op.create_table(
        'whatsapp_messages',
        sa.Column('id', UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('session_id', UUID(as_uuid=True), nullable=False),
        sa.Column('message_id', sa.String(255), nullable=False),
        sa.Column('from_number', sa.String(50), nullable=False),
        sa.Column('to_number', sa.String(50), nullable=False),
        sa.Column('message_type', sa.String(20), server_default='text', nullable=False),
        sa.Column('content', JSONB(), server_default='{}', nullable=False),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('ai_processed', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['session_id'], ['whatsapp_sessions.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('message_id', name='uq_whatsapp_messages_message_id')
    )
    op.create_index('ix_whatsapp_messages_tenant_id', 'whatsapp_messages', ['tenant_id'])
    op.create_index('ix_whatsapp_messages_session_id', 'whatsapp_messages', ['session_id'])
    op.create_index('idx_whatsapp_messages_tenant_session', 'whatsapp_messages', ['tenant_id', 'session_id'])
    op.create_index('idx_whatsapp_messages_tenant_status', 'whatsapp_messages', ['tenant_id', 'status'])
    op.create_index('idx_whatsapp_messages_tenant_created', 'whatsapp_messages', ['tenant_id', 'created_at'])


def downgrade():
    op.drop_table('whatsapp_messages')
    op.drop_table('whatsapp_sessions')
    op.drop_table('tenants')
