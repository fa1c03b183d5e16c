"""create channels, media_content and channel_viewers

Revision ID: 20261001120000
Revises:
Create Date: 2026-10-01 12:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261001120000"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "channels",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("channel_type", sa.String(length=16), server_default=sa.text("'tv'"), nullable=False),
        sa.Column("is_live", sa.Boolean(), server_default=sa.text("FALSE"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )

    op.create_table(
        "media_content",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("channel_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("source_url", sa.String(length=2048), nullable=False),
        sa.Column("file_type", sa.String(length=64), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("is_always_on", sa.Boolean(), server_default=sa.text("FALSE"), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(), nullable=True),
        sa.Column("window_start", sa.String(length=8), nullable=True),
        sa.Column("window_end", sa.String(length=8), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["channel_id"],
            ["channels.id"],
            name="fk_media_content_channel_id_channels",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_media_content_channel_id", "media_content", ["channel_id"])

    op.create_table(
        "channel_viewers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("channel_id", sa.String(length=36), nullable=False),
        sa.Column("session_id", sa.String(length=64), nullable=False),
        sa.Column("observer_id", sa.String(length=64), nullable=True),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["channel_id"],
            ["channels.id"],
            name="fk_channel_viewers_channel_id_channels",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("session_id", name="uq_channel_viewers_session_id"),
    )
    op.create_index("ix_channel_viewers_id", "channel_viewers", ["id"])
    op.create_index(
        "ix_channel_viewers_channel_last_seen",
        "channel_viewers",
        ["channel_id", "last_seen_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_channel_viewers_channel_last_seen", table_name="channel_viewers")
    op.drop_index("ix_channel_viewers_id", table_name="channel_viewers")
    op.drop_table("channel_viewers")
    op.drop_index("ix_media_content_channel_id", table_name="media_content")
    op.drop_table("media_content")
    op.drop_table("channels")
