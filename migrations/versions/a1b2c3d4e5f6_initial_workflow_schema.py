"""initial workflow schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # users has no FKs, so it goes first and breaks the dean/hod cycle
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_number', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('department_id', sa.Integer(), nullable=True),
        sa.Column('faculty_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_staff_number', 'users', ['staff_number'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'], unique=False)
    op.create_index('ix_users_department_id', 'users', ['department_id'], unique=False)
    op.create_index('ix_users_faculty_id', 'users', ['faculty_id'], unique=False)

    op.create_table(
        'faculties',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False, unique=True),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('dean_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_faculties_code', 'faculties', ['code'], unique=True)

    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False, unique=True),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('faculty_id', sa.Integer(), sa.ForeignKey('faculties.id'), nullable=True),
        sa.Column('hod_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_departments_code', 'departments', ['code'], unique=True)
    op.create_index('ix_departments_faculty_id', 'departments', ['faculty_id'], unique=False)

    op.create_table(
        'workflow_configs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('request_type', sa.String(length=50), nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('stages', sa.JSON(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('request_type', 'department_id', name='uq_workflow_config_type_dept'),
    )
    op.create_index('ix_workflow_configs_request_type', 'workflow_configs', ['request_type'], unique=False)
    op.create_index('ix_workflow_configs_department_id', 'workflow_configs', ['department_id'], unique=False)

    op.create_table(
        'requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('request_number', sa.String(length=64), nullable=False),
        sa.Column('request_type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('requestor_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('current_approver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('workflow_stage', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('leave_type', sa.String(length=30), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('total_working_days', sa.Integer(), nullable=True),
        sa.Column('substitute_staff_name', sa.String(length=200), nullable=True),
        sa.Column('event_name', sa.String(length=255), nullable=True),
        sa.Column('organizer', sa.String(length=255), nullable=True),
        sa.Column('event_dates', sa.String(length=255), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('estimated_cost', sa.String(length=100), nullable=True),
        sa.Column('conference_paper', sa.Boolean(), nullable=True),
        sa.Column('travel_request', sa.Boolean(), nullable=True),
        sa.Column('item_list', sa.JSON(), nullable=True),
        sa.Column('justification', sa.Text(), nullable=True),
        sa.Column('delivery_location', sa.String(length=255), nullable=True),
        sa.Column('budget_code', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_requests_request_number', 'requests', ['request_number'], unique=True)
    op.create_index('ix_requests_request_type', 'requests', ['request_type'], unique=False)
    op.create_index('ix_requests_status', 'requests', ['status'], unique=False)
    op.create_index('ix_requests_requestor_id', 'requests', ['requestor_id'], unique=False)
    op.create_index('ix_requests_department_id', 'requests', ['department_id'], unique=False)
    op.create_index('ix_requests_current_approver_id', 'requests', ['current_approver_id'], unique=False)

    op.create_table(
        'request_timeline',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('request_id', sa.Integer(), sa.ForeignKey('requests.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_request_timeline_request_id', 'request_timeline', ['request_id'], unique=False)
    op.create_index('ix_request_timeline_created_at', 'request_timeline', ['created_at'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('request_id', sa.Integer(), sa.ForeignKey('requests.id'), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.String(length=500), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('link', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_notification_user_read', 'notifications', ['user_id', 'is_read'], unique=False)
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('resource_type', sa.String(length=50), nullable=True),
        sa.Column('resource_id', sa.String(length=64), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'], unique=False)
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'], unique=False)


def downgrade():
    op.drop_index('ix_audit_logs_created_at', table_name='audit_logs')
    op.drop_index('ix_audit_logs_action', table_name='audit_logs')
    op.drop_table('audit_logs')

    op.drop_index('ix_notifications_created_at', table_name='notifications')
    op.drop_index('ix_notification_user_read', table_name='notifications')
    op.drop_table('notifications')

    op.drop_index('ix_request_timeline_created_at', table_name='request_timeline')
    op.drop_index('ix_request_timeline_request_id', table_name='request_timeline')
    op.drop_table('request_timeline')

    for name in ('current_approver_id', 'department_id', 'requestor_id', 'status', 'request_type', 'request_number'):
        op.drop_index(f'ix_requests_{name}', table_name='requests')
    op.drop_table('requests')

    op.drop_index('ix_workflow_configs_department_id', table_name='workflow_configs')
    op.drop_index('ix_workflow_configs_request_type', table_name='workflow_configs')
    op.drop_table('workflow_configs')

    op.drop_index('ix_departments_faculty_id', table_name='departments')
    op.drop_index('ix_departments_code', table_name='departments')
    op.drop_table('departments')

    op.drop_index('ix_faculties_code', table_name='faculties')
    op.drop_table('faculties')

    for name in ('faculty_id', 'department_id', 'role', 'email', 'staff_number'):
        op.drop_index(f'ix_users_{name}', table_name='users')
    op.drop_table('users')
