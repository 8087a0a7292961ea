"""Helpers shared by the presence schema migrations."""
import sqlalchemy as sa
from alembic import op


def get_timestamp_default():
    """Server default for the ``created_at`` / ``login_time`` columns of the log tables.

    PostgreSQL gets ``NOW()``, everything else ``CURRENT_TIMESTAMP``.
    """
    if op.get_bind().dialect.name == 'postgresql':
        return sa.text('NOW()')
    return sa.text('CURRENT_TIMESTAMP')
