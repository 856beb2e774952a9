"""
NearMatch — Profile model (identity, position, preferences, boost state).
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nearmatch.database import Base


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        Index("ix_profiles_lat_lng", "latitude", "longitude"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    gender: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="male / female / non-binary / other"
    )
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    photos: Mapped[list | None] = mapped_column(
        JSON, nullable=True, comment="Array of photo URLs"
    )

    # ── Position (absent until the user grants location) ───────────
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # ── Preferences ────────────────────────────────────────────────
    preferred_gender: Mapped[str] = mapped_column(
        String, default="both", server_default="both", nullable=False,
        comment="male / female / both",
    )
    age_min: Mapped[int] = mapped_column(
        Integer, default=18, server_default="18", nullable=False
    )
    age_max: Mapped[int] = mapped_column(
        Integer, default=50, server_default="50", nullable=False
    )
    max_distance_km: Mapped[float] = mapped_column(
        Float, default=50.0, server_default="50", nullable=False
    )

    # ── Moderation / lifecycle ─────────────────────────────────────
    role: Mapped[str] = mapped_column(
        String, default="user", server_default="user", nullable=False,
        comment="user / admin",
    )
    is_banned: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False, index=True
    )
    onboarding_complete: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    last_active: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    boosted_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    swipes: Mapped[list["Swipe"]] = relationship(
        "Swipe",
        foreign_keys="Swipe.swiper_id",
        back_populates="swiper",
        cascade="all, delete-orphan",
    )
    temp_skips: Mapped[list["TempSkip"]] = relationship(
        "TempSkip",
        foreign_keys="TempSkip.profile_id",
        back_populates="profile",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Profile {self.display_name!r} id={self.id}>"
