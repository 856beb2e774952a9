"""Initial schema — profiles, swipes, temp_skips and matches.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. profiles ─────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("display_name", sa.String, nullable=False),
        sa.Column(
            "gender",
            sa.String,
            nullable=True,
            comment="male / female / non-binary / other",
        ),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column(
            "photos",
            postgresql.JSONB,
            nullable=True,
            comment="Array of photo URLs",
        ),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column(
            "preferred_gender",
            sa.String,
            server_default="both",
            nullable=False,
            comment="male / female / both",
        ),
        sa.Column("age_min", sa.Integer, server_default="18", nullable=False),
        sa.Column("age_max", sa.Integer, server_default="50", nullable=False),
        sa.Column("max_distance_km", sa.Float, server_default="50", nullable=False),
        sa.Column(
            "role",
            sa.String,
            server_default="user",
            nullable=False,
            comment="user / admin",
        ),
        sa.Column("is_banned", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "onboarding_complete",
            sa.Boolean,
            server_default="false",
            nullable=False,
        ),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=True),
        sa.Column("boosted_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_profiles_lat_lng", "profiles", ["latitude", "longitude"])
    op.create_index("ix_profiles_is_banned", "profiles", ["is_banned"])
    op.create_index("ix_profiles_last_active", "profiles", ["last_active"])

    # ── 2. swipes (append-only like / dislike log) ──────────────────
    op.create_table(
        "swipes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "swiper_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "target_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action", sa.String, nullable=False, comment="like / dislike"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("swiper_id", "target_id", name="uq_swipe_pair"),
    )

    # ── 3. temp_skips ───────────────────────────────────────────────
    op.create_table(
        "temp_skips",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "profile_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "target_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "skipped_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_temp_skips_profile_skipped",
        "temp_skips",
        ["profile_id", "skipped_at"],
    )

    # ── 4. matches ──────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("pair_key", sa.String, nullable=False, comment="<low id>:<high id>"),
        sa.Column(
            "user_a_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_b_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "matched_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "last_message",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Written by the messaging service",
        ),
        sa.Column("is_active", sa.Boolean, server_default="true", nullable=False),
        sa.UniqueConstraint("pair_key", name="uq_match_pair"),
    )
    op.create_index("ix_matches_user_a", "matches", ["user_a_id"])
    op.create_index("ix_matches_user_b", "matches", ["user_b_id"])


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_index("ix_matches_user_b", table_name="matches")
    op.drop_index("ix_matches_user_a", table_name="matches")
    op.drop_table("matches")

    op.drop_index("ix_temp_skips_profile_skipped", table_name="temp_skips")
    op.drop_table("temp_skips")

    op.drop_table("swipes")

    op.drop_index("ix_profiles_last_active", table_name="profiles")
    op.drop_index("ix_profiles_is_banned", table_name="profiles")
    op.drop_index("ix_profiles_lat_lng", table_name="profiles")
    op.drop_table("profiles")
