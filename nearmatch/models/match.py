"""
NearMatch — Match, Swipe and TempSkip models.

``swipes`` is the append-only interaction log behind a profile's ``liked``
and ``disliked`` sets; ``temp_skips`` backs the time-bounded "pass for now"
list.  Matches are stored with their participants normalised so that the
``pair_key`` unique index can arbitrate concurrent creation.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nearmatch.database import Base
from nearmatch.utils.clock import utcnow


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("pair_key", name="uq_match_pair"),
        Index("ix_matches_user_a", "user_a_id"),
        Index("ix_matches_user_b", "user_b_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    pair_key: Mapped[str] = mapped_column(
        String, nullable=False, comment="<low id>:<high id>"
    )
    user_a_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    user_b_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    matched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    last_message: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
        comment="Written by the messaging service",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true", nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Match {self.user_a_id} <-> {self.user_b_id} "
            f"active={self.is_active}>"
        )


class Swipe(Base):
    __tablename__ = "swipes"
    __table_args__ = (
        UniqueConstraint("swiper_id", "target_id", name="uq_swipe_pair"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    swiper_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    target_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(
        String, nullable=False, comment="like / dislike"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # ── Relationships ──────────────────────────────────────────────
    swiper: Mapped["Profile"] = relationship(
        "Profile", foreign_keys=[swiper_id], back_populates="swipes"
    )

    def __repr__(self) -> str:
        return f"<Swipe {self.swiper_id} -> {self.target_id} action={self.action!r}>"


class TempSkip(Base):
    __tablename__ = "temp_skips"
    __table_args__ = (
        Index("ix_temp_skips_profile_skipped", "profile_id", "skipped_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    target_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    skipped_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    profile: Mapped["Profile"] = relationship(
        "Profile", foreign_keys=[profile_id], back_populates="temp_skips"
    )

    def __repr__(self) -> str:
        return f"<TempSkip {self.profile_id} -> {self.target_id} at={self.skipped_at}>"
