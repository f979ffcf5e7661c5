"""backfill post status and deleted flag, then make them required

Revision ID: 5b2e9c41d7a8
Revises: initial_schema
Create Date: 2026-10-14 11:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.orm import Session

from postdesk.services.backfill import backfill_post_defaults


# revision identifiers, used by Alembic.
revision: str = '5b2e9c41d7a8'
down_revision: Union[str, None] = 'initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Existing rows must carry both values before the columns become NOT NULL
    summary = backfill_post_defaults(Session(bind=op.get_bind()))
    print(f"Backfilled post defaults: {summary}")

    with op.batch_alter_table('posts') as batch_op:
        batch_op.alter_column(
            'status',
            existing_type=sa.String(),
            nullable=False,
            server_default='draft',
        )
        batch_op.alter_column(
            'deleted',
            existing_type=sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        )
        batch_op.create_index(batch_op.f('ix_posts_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_posts_deleted'), ['deleted'], unique=False)


def downgrade() -> None:
    with op.batch_alter_table('posts') as batch_op:
        batch_op.drop_index(batch_op.f('ix_posts_deleted'))
        batch_op.drop_index(batch_op.f('ix_posts_status'))
        batch_op.alter_column(
            'deleted', existing_type=sa.Boolean(), nullable=True, server_default=None
        )
        batch_op.alter_column(
            'status', existing_type=sa.String(), nullable=True, server_default=None
        )
