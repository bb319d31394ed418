"""create_classes_and_app_settings

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-18 09:12:40.512207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'classes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('special_id', sa.String(50), nullable=False),
        sa.Column('main_category', sa.String(255), nullable=True),
        sa.Column('quality', sa.String(255), nullable=True),
        sa.Column('class_name', sa.String(255), nullable=False),
        sa.Column('class_name_arabic', sa.String(255), nullable=True),
        sa.Column('class_name_english', sa.String(255), nullable=True),
        sa.Column('class_features', sa.Text(), nullable=True),
        sa.Column('class_weight', sa.Numeric(12, 3), nullable=True),
        sa.Column('class_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('class_quantity', sa.Integer(), nullable=True),
        sa.Column('class_video', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_classes_special_id', 'classes', ['special_id'], unique=True)
    op.create_index('ix_classes_main_category', 'classes', ['main_category'])
    op.create_index('ix_classes_quality', 'classes', ['quality'])

    op.create_table(
        'app_settings',
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade() -> None:
    op.drop_table('app_settings')
    op.drop_index('ix_classes_quality', table_name='classes')
    op.drop_index('ix_classes_main_category', table_name='classes')
    op.drop_index('ix_classes_special_id', table_name='classes')
    op.drop_table('classes')
