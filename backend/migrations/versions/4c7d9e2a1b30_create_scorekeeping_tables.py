"""create game, team, player and play tables

Revision ID: 4c7d9e2a1b30
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7d9e2a1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'game',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('sport', sa.String(length=32), nullable=False),
        sa.Column('rules', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('current_period', sa.Integer(), nullable=False),
        sa.Column('period_length', sa.Integer(), nullable=False),
        sa.Column('total_periods', sa.Integer(), nullable=False),
        sa.Column('game_clock_seconds', sa.Integer(), nullable=False),
        sa.Column('is_clock_running', sa.Boolean(), nullable=False),
        sa.Column('possession', sa.String(length=8), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'team',
        sa.Column('game_id', sa.String(length=64), nullable=False),
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('role', sa.String(length=8), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('abbreviation', sa.String(length=4), nullable=False),
        sa.Column('color', sa.String(length=16), nullable=True),
        sa.Column('timeouts_remaining', sa.Integer(), nullable=False),
        sa.Column('team_fouls', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.PrimaryKeyConstraint('game_id', 'id'),
    )
    with op.batch_alter_table('team') as batch_op:
        batch_op.create_index(batch_op.f('ix_team_game_id'), ['game_id'], unique=False)

    op.create_table(
        'player',
        sa.Column('game_id', sa.String(length=64), nullable=False),
        sa.Column('team_id', sa.String(length=64), nullable=False),
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('position', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_on_court', sa.Boolean(), nullable=False),
        sa.Column('fouls', sa.Integer(), nullable=False),
        sa.Column('stats', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['game_id', 'team_id'], ['team.game_id', 'team.id']),
        sa.PrimaryKeyConstraint('game_id', 'team_id', 'id'),
    )
    op.create_table(
        'play',
        sa.Column('game_id', sa.String(length=64), nullable=False),
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('period', sa.Integer(), nullable=False),
        sa.Column('game_time', sa.String(length=8), nullable=False),
        sa.Column('player_id', sa.String(length=64), nullable=True),
        sa.Column('player_name', sa.String(length=128), nullable=True),
        sa.Column('team_id', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.PrimaryKeyConstraint('game_id', 'id'),
    )
    with op.batch_alter_table('play') as batch_op:
        batch_op.create_index(batch_op.f('ix_play_seq'), ['seq'], unique=False)


def downgrade():
    with op.batch_alter_table('play') as batch_op:
        batch_op.drop_index(batch_op.f('ix_play_seq'))
    op.drop_table('play')
    op.drop_table('player')
    with op.batch_alter_table('team') as batch_op:
        batch_op.drop_index(batch_op.f('ix_team_game_id'))
    op.drop_table('team')
    op.drop_table('game')
