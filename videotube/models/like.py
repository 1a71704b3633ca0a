from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from videotube.database import Base


class Like(Base):
    """A like on exactly one target: a video, a comment or a tweet."""

    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=True, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)
    tweet_id = Column(Integer, ForeignKey("tweets.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    video = relationship("Video", back_populates="likes")
    comment = relationship("Comment", back_populates="likes")
    tweet = relationship("Tweet", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_likes_user_video"),
        UniqueConstraint("user_id", "comment_id", name="uq_likes_user_comment"),
        UniqueConstraint("user_id", "tweet_id", name="uq_likes_user_tweet"),
        CheckConstraint(
            "(video_id IS NOT NULL AND comment_id IS NULL AND tweet_id IS NULL)"
            " OR (video_id IS NULL AND comment_id IS NOT NULL AND tweet_id IS NULL)"
            " OR (video_id IS NULL AND comment_id IS NULL AND tweet_id IS NOT NULL)",
            name="ck_likes_single_target",
        ),
    )
