"""Initial schema - roles, users, categories

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Roles
    roles = op.create_table('roles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('allowed_actions', sa.JSON(), nullable=True),
        sa.Column('not_allowed_actions', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Users
    users = op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('first_name', sa.String(255), nullable=False),
        sa.Column('last_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('email', sa.String(320), nullable=False, unique=True, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    # User <-> Role membership
    user_roles = op.create_table('user_roles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id'), primary_key=True),
    )

    # Categories
    categories = op.create_table('categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('description', sa.Text(), nullable=True),
    )

    # Seed data
    op.bulk_insert(roles, [
        {'id': 1, 'name': 'Administrator', 'is_active': True,
         'allowed_actions': ['*'], 'not_allowed_actions': []},
        {'id': 2, 'name': 'Inventory Manager', 'is_active': True,
         'allowed_actions': ['/inventory/*', '/product/*', '/role/read'], 'not_allowed_actions': []},
    ])
    op.bulk_insert(users, [
        {'id': 1, 'first_name': 'Admin', 'last_name': '', 'email': 'admin@inventorym.com'},
    ])
    op.bulk_insert(user_roles, [
        {'user_id': 1, 'role_id': 1},
    ])
    op.bulk_insert(categories, [
        {'id': 1, 'name': 'Electronics', 'is_active': True,
         'description': 'Electronic Devices go in this categories, such as: Cellphones, TVs, etc.'},
    ])

    # Explicit ids above; move sequences past them on Postgres.
    if op.get_bind().dialect.name == 'postgresql':
        for table in ('roles', 'users', 'categories'):
            op.execute(f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), (SELECT MAX(id) FROM {table}))")


def downgrade() -> None:
    op.drop_table('categories')
    op.drop_table('user_roles')
    op.drop_table('users')
    op.drop_table('roles')
