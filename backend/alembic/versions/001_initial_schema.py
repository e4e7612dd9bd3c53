"""Initial Relief Tracker schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

user_profiles keyed by Firebase UID, relief_pins with moderation status,
visibility flag and optional relief window.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum('public', 'admin', name='user_role')
relief_type = sa.Enum('food', 'medical', 'shelter', 'water', 'clothing', 'other', name='relief_type')
pin_status = sa.Enum('pending', 'approved', 'rejected', 'completed', name='pin_status')


def upgrade() -> None:
    # === USER PROFILES ===
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.String(128), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, index=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('avatar_url', sa.String(1024), nullable=True),
        sa.Column('role', user_role, nullable=False, server_default='public'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === RELIEF PINS ===
    op.create_table(
        'relief_pins',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.String(128), sa.ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('location_name', sa.String(255), nullable=False),
        sa.Column('relief_type', relief_type, nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('photo_url', sa.String(1024), nullable=True),
        sa.Column('status', pin_status, nullable=False, server_default='pending', index=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true(), index=True),
        sa.Column('start_datetime', sa.DateTime(), nullable=True),
        sa.Column('end_datetime', sa.DateTime(), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('latitude BETWEEN -90 AND 90', name='ck_relief_pin_latitude'),
        sa.CheckConstraint('longitude BETWEEN -180 AND 180', name='ck_relief_pin_longitude'),
        sa.CheckConstraint(
            'end_datetime IS NULL OR start_datetime IS NULL OR end_datetime > start_datetime',
            name='ck_relief_pin_window',
        ),
    )


def downgrade() -> None:
    op.drop_table('relief_pins')
    op.drop_table('user_profiles')
    pin_status.drop(op.get_bind(), checkfirst=True)
    relief_type.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
