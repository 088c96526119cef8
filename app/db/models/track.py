from sqlalchemy import Column, Float, ForeignKey, JSON, String, Enum, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base, BigId
import enum

class Visibility(str, enum.Enum):
    private = "private"
    unlisted = "unlisted"
    public = "public"

class Track(Base):
    __tablename__ = "track"

    id = Column(BigId, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    tags = Column(JSON, default=list)
    visibility = Column(Enum(Visibility), nullable=False, default=Visibility.private)

    # canonical fields, written only by VersionManager once versions exist
    version = Column(String(8), nullable=False, default="001")
    file_url = Column(String(1024), nullable=False)
    filename = Column(String(512))
    duration = Column(Float)
    waveform_data = Column(JSON(none_as_null=True))

    pinned_version_id = Column(
        BigId,
        ForeignKey("track_version.id", use_alter=True, name="fk_track_pinned_version", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    versions = relationship(
        "TrackVersion",
        back_populates="track",
        foreign_keys="TrackVersion.track_id",
        order_by="TrackVersion.version_number",
        cascade="all, delete-orphan",
    )

    def is_visible_to(self, user_id: str | None) -> bool:
        return self.visibility != Visibility.private or (user_id is not None and user_id == self.user_id)
