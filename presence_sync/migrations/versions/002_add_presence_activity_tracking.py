"""Add last_activity_at to users and activity lookup indexes

Revision ID: 002_add_presence_activity_tracking
Revises: 001_initial_presence_schema
Create Date: 2025-11-24 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '002_add_presence_activity_tracking'
down_revision: Union[str, None] = '001_initial_presence_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add last_activity_at and the composite indexes used by the presence job.

    The presence job filters both log tables by a list of user ids and a lower
    time bound, so each index leads with the user reference.
    """
    with op.batch_alter_table('common_user', schema=None) as batch_op:
        batch_op.add_column(sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=True))

    # Use IF NOT EXISTS to make migration idempotent
    op.execute(
        'CREATE INDEX IF NOT EXISTS ix_game_user_money_logs_member_created '
        'ON game_user_money_logs (member_id, created_at)'
    )
    op.execute(
        'CREATE INDEX IF NOT EXISTS ix_common_login_log_unique_type_time '
        'ON common_login_log ("unique", login_type, login_time)'
    )


def downgrade() -> None:
    """Remove the activity indexes and last_activity_at."""
    op.execute('DROP INDEX IF EXISTS ix_common_login_log_unique_type_time')
    op.execute('DROP INDEX IF EXISTS ix_game_user_money_logs_member_created')

    with op.batch_alter_table('common_user', schema=None) as batch_op:
        batch_op.drop_column('last_activity_at')
