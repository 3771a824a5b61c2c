"""create game_event table for analytics records

Revision ID: 5c2e9d41b7aa
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9d41b7aa'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'game_event' in set(insp.get_table_names()):
        return
    op.create_table(
        'game_event',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('timestamp', sa.String(length=32), nullable=False),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('session_id', sa.String(length=64), nullable=False),
        sa.Column('payload', sa.Text(), nullable=True),
    )
    with op.batch_alter_table('game_event') as batch_op:
        batch_op.create_index('ix_game_event_event_type', ['event_type'])
        batch_op.create_index('ix_game_event_session_id', ['session_id'])


def downgrade():
    op.drop_table('game_event')
