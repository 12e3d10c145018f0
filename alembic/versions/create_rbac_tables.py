"""create rbac tables

Revision ID: 3c1f9a7d2b10
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'time_actives',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('schedule_day_of_week', sa.String(length=50), nullable=True),
        sa.Column('schedule_day_of_month', sa.String(length=100), nullable=True),
        sa.Column('schedule_day', sa.SmallInteger(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'groups',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('time_active_id', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['time_active_id'], ['time_actives.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'roles',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'actions',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'entities',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('level_security', sa.SmallInteger(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('phone_number', sa.String(length=30), nullable=True),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('user_status', sa.SmallInteger(), nullable=False),
        sa.Column('manage_by', sa.UUID(), nullable=True),
        sa.Column('level_security', sa.SmallInteger(), nullable=False),
        sa.Column('group_id', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['manage_by'], ['users.id']),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'])
    op.create_index('ix_users_user_status', 'users', ['user_status'])
    op.create_index('ix_users_group_id', 'users', ['group_id'])
    # 삭제되지 않은 사용자(user_status <> -2)만 username unique
    op.create_index(
        'uq_users_username_active',
        'users',
        ['username'],
        unique=True,
        postgresql_where=sa.text('user_status <> -2'),
    )

    op.create_table(
        'permissions',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('action_id', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=50), nullable=False),
        sa.Column('role_id', sa.String(length=100), nullable=True),
        sa.Column('time_active_id', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['action_id'], ['actions.id']),
        sa.ForeignKeyConstraint(['entity_id'], ['entities.id']),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.ForeignKeyConstraint(['time_active_id'], ['time_actives.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_permissions_action_id', 'permissions', ['action_id'])
    op.create_index('ix_permissions_entity_id', 'permissions', ['entity_id'])
    op.create_index('ix_permissions_role_id', 'permissions', ['role_id'])

    op.create_table(
        'role_permissions',
        sa.Column('role_id', sa.String(length=100), nullable=False),
        sa.Column('permission_id', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id']),
        sa.PrimaryKeyConstraint('role_id', 'permission_id'),
    )

    op.create_table(
        'role_users',
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('role_id', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.PrimaryKeyConstraint('user_id', 'role_id'),
    )

    op.create_table(
        'group_roles',
        sa.Column('group_id', sa.String(length=100), nullable=False),
        sa.Column('role_id', sa.String(length=100), nullable=False),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id']),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.PrimaryKeyConstraint('group_id', 'role_id'),
    )

    op.create_table(
        'login_histories',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('login_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('logout_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('mac_device', sa.String(length=64), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('status_login', sa.SmallInteger(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_login_histories_user_id', 'login_histories', ['user_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('actor', sa.String(length=100), nullable=False),
        sa.Column(
            'action',
            sa.Enum(
                'CREATE', 'UPDATE', 'SOFT_DELETE', 'HARD_DELETE',
                'ASSIGN', 'UNASSIGN', 'REPLACE', 'CHANGE_PASSWORD',
                name='audit_action',
            ),
            nullable=False,
        ),
        sa.Column('entity_id', sa.String(length=50), nullable=False),
        sa.Column('target_id', sa.String(length=255), nullable=True),
        sa.Column('data_before', sa.JSON(), nullable=True),
        sa.Column('data_after', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_index('ix_login_histories_user_id', table_name='login_histories')
    op.drop_table('login_histories')
    op.drop_table('group_roles')
    op.drop_table('role_users')
    op.drop_table('role_permissions')
    op.drop_index('ix_permissions_role_id', table_name='permissions')
    op.drop_index('ix_permissions_entity_id', table_name='permissions')
    op.drop_index('ix_permissions_action_id', table_name='permissions')
    op.drop_table('permissions')
    op.drop_index('uq_users_username_active', table_name='users')
    op.drop_index('ix_users_group_id', table_name='users')
    op.drop_index('ix_users_user_status', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
    op.drop_table('entities')
    op.drop_table('actions')
    op.drop_table('roles')
    op.drop_table('groups')
    op.drop_table('time_actives')
    sa.Enum(name='audit_action').drop(op.get_bind(), checkfirst=True)
