"""Create user, game money log and login log tables

Revision ID: 001_initial_presence_schema
Revises:
Create Date: 2025-11-20 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from presence_sync.migrations.util import get_timestamp_default


# revision identifiers, used by Alembic.
revision: str = '001_initial_presence_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the tables read and written by the presence job."""
    op.create_table(
        'common_user',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('state', sa.SmallInteger(), server_default='0', nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'game_user_money_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('money', sa.Numeric(precision=14, scale=2), server_default='0', nullable=False),
        sa.Column('remark', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=get_timestamp_default(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'common_login_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('unique', sa.Integer(), nullable=False),
        sa.Column('login_type', sa.SmallInteger(), server_default='2', nullable=False),
        sa.Column('login_ip', sa.String(length=64), nullable=True),
        sa.Column('login_time', sa.DateTime(timezone=True), server_default=get_timestamp_default(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    """Drop presence tables."""
    op.drop_table('common_login_log')
    op.drop_table('game_user_money_logs')
    op.drop_table('common_user')
