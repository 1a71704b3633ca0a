"""
Tweet Model

Short text posts on a user's channel feed.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from videotube.database import Base


class Tweet(Base):
    __tablename__ = "tweets"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner = relationship("User", back_populates="tweets", lazy="selectin")
    likes = relationship("Like", back_populates="tweet", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (Index("ix_tweets_owner_created", "owner_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<Tweet(id={self.id}, owner_id={self.owner_id})>"
