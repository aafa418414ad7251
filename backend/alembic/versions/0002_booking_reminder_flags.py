"""add 30-minute reminder flags to bookings

Revision ID: 0002_booking_reminder_flags
Revises: 0001_initial
Create Date: 2025-12-01
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002_booking_reminder_flags'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def upgrade() -> None:
    op.add_column('bookings', sa.Column('client_reminder_sent', sa.Boolean(), nullable=False, server_default=sa.text('false')))
    op.add_column('bookings', sa.Column('host_reminder_sent', sa.Boolean(), nullable=False, server_default=sa.text('false')))
    # partial scans in the reminder sweep filter on status + date
    op.create_index('ix_bookings_status_date', 'bookings', ['status', 'date'])


def downgrade() -> None:
    op.drop_index('ix_bookings_status_date', table_name='bookings')
    op.drop_column('bookings', 'host_reminder_sent')
    op.drop_column('bookings', 'client_reminder_sent')
