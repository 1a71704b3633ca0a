"""
Comment Model

Threaded comments on videos. Replies point at their parent through
``parent_id``; deleting a comment deletes its whole reply subtree.
"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from videotube.database import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    video_id = Column(Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Parent comment for replies (null = top-level comment)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)

    body = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    is_edited = Column(Boolean, default=False, nullable=False)

    # Relationships
    video = relationship("Video", back_populates="comments")
    user = relationship("User", back_populates="comments", lazy="selectin")

    # Self-referential relationship for nested replies
    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship(
        "Comment",
        back_populates="parent",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Comment.created_at",
    )

    likes = relationship("Like", back_populates="comment", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_comments_video_created", "video_id", "created_at"),
        Index("ix_comments_parent_created", "parent_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, video_id={self.video_id}, user_id={self.user_id})>"
