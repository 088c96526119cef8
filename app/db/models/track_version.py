from sqlalchemy import Column, Float, ForeignKey, Integer, JSON, String, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base, BigId

class TrackVersion(Base):
    __tablename__ = "track_version"
    __table_args__ = (
        UniqueConstraint("track_id", "version_number", name="uq_track_version_number"),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    track_id = Column(BigId, ForeignKey("track.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    title = Column(String(255))
    description = Column(Text)
    file_url = Column(String(1024), nullable=False)
    filename = Column(String(512))
    duration = Column(Float)
    waveform_data = Column(JSON(none_as_null=True))
    created_at = Column(DateTime, server_default=func.now())

    track = relationship("Track", back_populates="versions", foreign_keys=[track_id])

    @property
    def is_pinned(self) -> bool:
        return self.track is not None and self.track.pinned_version_id == self.id
