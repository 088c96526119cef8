from sqlalchemy import Column, Float, ForeignKey, String, DateTime, Text
from sqlalchemy.sql import func
from app.db.base import Base, BigId

class Comment(Base):
    __tablename__ = "comment"

    id = Column(BigId, primary_key=True, autoincrement=True)
    track_id = Column(BigId, ForeignKey("track.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(Float)
    # label captured at creation, never rewritten
    version = Column(String(8))
    created_at = Column(DateTime, server_default=func.now())
