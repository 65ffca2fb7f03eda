"""Initial schema: agents, tasks, deliverables, versions, approvals, activities

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade():
    # Agent roster
    op.create_table(
        'agents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('role', sa.String(200), nullable=False),
        sa.Column('squad', sa.String(20), nullable=False),
        sa.Column('session_key', sa.String(200), nullable=False),
        sa.Column('level', sa.String(20), nullable=False, server_default='specialist'),
        sa.Column('status', sa.String(20), nullable=False, server_default='idle'),
        sa.Column('current_task_id', sa.Integer(), nullable=True),
        sa.Column('last_heartbeat', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_agents_id', 'agents', ['id'])
    op.create_index('ix_agents_session_key', 'agents', ['session_key'], unique=True)
    op.create_index('ix_agents_squad', 'agents', ['squad'])

    # Tasks
    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='inbox'),
        sa.Column('priority', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('squad', sa.String(20), nullable=False),
        sa.Column('created_by', sa.String(200), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('archived_by_agent_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_tasks_id', 'tasks', ['id'])
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index('ix_tasks_squad', 'tasks', ['squad'])
    op.create_index('ix_tasks_squad_status', 'tasks', ['squad', 'status'])

    # Deliverables
    op.create_table(
        'deliverables',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('squad', sa.String(20), nullable=False),
        sa.Column('created_by_agent_id', sa.Integer(), sa.ForeignKey('agents.id', ondelete='SET NULL'), nullable=True),
        sa.Column('task_id', sa.Integer(), nullable=True),

        # Content
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('content_format', sa.String(20), nullable=False, server_default='markdown'),
        sa.Column('structured_data', JSONType, nullable=True),

        # Attachment reference
        sa.Column('file_url', sa.String(2000), nullable=True),
        sa.Column('file_type', sa.String(200), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=True),

        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_deliverables_id', 'deliverables', ['id'])
    op.create_index('ix_deliverables_task', 'deliverables', ['task_id'])
    op.create_index('ix_deliverables_agent', 'deliverables', ['created_by_agent_id'])
    op.create_index('ix_deliverables_status', 'deliverables', ['status'])
    op.create_index('ix_deliverables_type', 'deliverables', ['type'])
    op.create_index('ix_deliverables_squad', 'deliverables', ['squad'])

    # Composite indexes for filtered lists
    op.create_index('ix_deliverables_squad_status', 'deliverables', ['squad', 'status'])
    op.create_index('ix_deliverables_squad_type', 'deliverables', ['squad', 'type'])

    # Version history
    op.create_table(
        'deliverable_versions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('deliverable_id', sa.Integer(), sa.ForeignKey('deliverables.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('structured_data', JSONType, nullable=True),
        sa.Column('edited_by', sa.String(200), nullable=False),
        sa.Column('change_summary', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('deliverable_id', 'version', name='uq_deliverable_versions_deliverable_version'),
    )
    op.create_index('ix_deliverable_versions_id', 'deliverable_versions', ['id'])
    op.create_index('ix_deliverable_versions_deliverable', 'deliverable_versions', ['deliverable_id'])

    # Approvals
    op.create_table(
        'approvals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('action_type', sa.String(200), nullable=False),
        sa.Column('payload', JSONType, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('requested_by_agent_id', sa.Integer(), nullable=True),
        sa.Column('related_task_id', sa.Integer(), nullable=True),
        sa.Column('correlation_id', sa.String(200), nullable=True),
        sa.Column('decided_by', sa.String(200), nullable=True),
        sa.Column('decision_note', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.Column('executed_at', sa.DateTime(), nullable=True),
        sa.Column('execution_result', JSONType, nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_approvals_id', 'approvals', ['id'])
    op.create_index('ix_approvals_status', 'approvals', ['status'])
    op.create_index('ix_approvals_task', 'approvals', ['related_task_id'])

    # Activity feed
    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('agent_id', sa.Integer(), nullable=True),
        sa.Column('agent_name', sa.String(200), nullable=True),
        sa.Column('agent_role', sa.String(200), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('details', JSONType, nullable=True),
        sa.Column('task_id', sa.Integer(), nullable=True),
        sa.Column('squad', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_activities_id', 'activities', ['id'])
    op.create_index('ix_activities_agent', 'activities', ['agent_id'])
    op.create_index('ix_activities_task', 'activities', ['task_id'])
    op.create_index('ix_activities_squad', 'activities', ['squad'])
    op.create_index('ix_activities_created_at', 'activities', ['created_at'])


def downgrade():
    op.drop_table('activities')
    op.drop_table('approvals')
    op.drop_table('deliverable_versions')
    op.drop_table('deliverables')
    op.drop_table('tasks')
    op.drop_table('agents')
