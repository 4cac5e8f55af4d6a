"""initial schema: contacts, leads, reminder states, merge logs

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'contacts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('external_id', sa.String(length=64), nullable=True),
        sa.Column('external_handle', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=255), nullable=True),
        sa.Column('last_name', sa.String(length=255), nullable=True),
        sa.Column('locale', sa.String(length=8), nullable=False, server_default='uz'),
        sa.Column('goal_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contacts_phone', 'contacts', ['phone'], unique=True)
    op.create_index('ix_contacts_external_id', 'contacts', ['external_id'], unique=True)

    op.create_table(
        'leads',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('contact_id', sa.String(length=36), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('company_type', sa.String(length=255), nullable=True),
        sa.Column('role_in_company', sa.String(length=255), nullable=True),
        sa.Column('interests', sa.JSON(), nullable=True),
        sa.Column('company_description', sa.Text(), nullable=True),
        sa.Column('annual_turnover', sa.String(length=255), nullable=True),
        sa.Column('number_of_employees', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=50), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('decided_by', sa.String(length=255), nullable=True),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.Column('decision_reason', sa.Text(), nullable=True),
        sa.Column('review_chat_id', sa.String(length=64), nullable=True),
        sa.Column('review_message_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_leads_contact_id', 'leads', ['contact_id'])
    op.create_index('ix_leads_phone_number', 'leads', ['phone_number'])
    op.create_index('ix_leads_status', 'leads', ['status'])

    op.create_table(
        'reminder_states',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.String(length=36), nullable=False),
        sa.Column('reminder_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('goal_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_sent_at', sa.DateTime(), nullable=True),
        sa.Column('next_due_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reminder_states_id', 'reminder_states', ['id'])
    op.create_index('ix_reminder_states_contact_id', 'reminder_states', ['contact_id'], unique=True)
    op.create_index('ix_reminder_states_next_due_at', 'reminder_states', ['next_due_at'])

    op.create_table(
        'contact_merge_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('winner_contact_id', sa.String(length=36), nullable=False),
        sa.Column('loser_contact_id', sa.String(length=36), nullable=False),
        sa.Column('reason', sa.String(length=50), nullable=False),
        sa.Column('leads_moved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('merged_at', sa.DateTime(), nullable=False),
        sa.Column('loser_snapshot', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['winner_contact_id'], ['contacts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contact_merge_logs_id', 'contact_merge_logs', ['id'])
    op.create_index('ix_contact_merge_logs_winner_contact_id', 'contact_merge_logs', ['winner_contact_id'])
    op.create_index('ix_contact_merge_logs_loser_contact_id', 'contact_merge_logs', ['loser_contact_id'])


def downgrade() -> None:
    op.drop_table('contact_merge_logs')
    op.drop_table('reminder_states')
    op.drop_table('leads')
    op.drop_table('contacts')
