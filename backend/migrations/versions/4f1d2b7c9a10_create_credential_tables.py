"""create principals, refresh_records and reset_records

Revision ID: 4f1d2b7c9a10
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '4f1d2b7c9a10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'principals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('credential_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_principals')),
        sa.UniqueConstraint('email', name='uq_principals_email'),
    )
    op.create_table(
        'refresh_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('principal_id', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['principal_id'], ['principals.id'], name=op.f('fk_refresh_records_principal_id_principals'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_refresh_records')),
        sa.UniqueConstraint('principal_id', name='uq_refresh_records_principal_id'),
        sa.UniqueConstraint('token_hash', name='uq_refresh_records_token_hash'),
    )
    with op.batch_alter_table('refresh_records', schema=None) as batch_op:
        batch_op.create_index('ix_refresh_records_expires_at', ['expires_at'], unique=False)

    op.create_table(
        'reset_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('principal_id', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['principal_id'], ['principals.id'], name=op.f('fk_reset_records_principal_id_principals'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_reset_records')),
        sa.UniqueConstraint('token_hash', name='uq_reset_records_token_hash'),
    )
    with op.batch_alter_table('reset_records', schema=None) as batch_op:
        batch_op.create_index('ix_reset_records_principal_id', ['principal_id'], unique=False)


def downgrade():
    with op.batch_alter_table('reset_records', schema=None) as batch_op:
        batch_op.drop_index('ix_reset_records_principal_id')
    op.drop_table('reset_records')

    with op.batch_alter_table('refresh_records', schema=None) as batch_op:
        batch_op.drop_index('ix_refresh_records_expires_at')
    op.drop_table('refresh_records')

    op.drop_table('principals')
