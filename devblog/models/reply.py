from sqlalchemy import Column, ForeignKey, Integer, String, Text

from devblog.core.database import Base, TimestampMixin


class Reply(TimestampMixin, Base):
    __tablename__ = "replies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Display hint only, not a reference
    reply_to_username = Column(String(50), nullable=True)

    # Content
    body = Column(Text, nullable=False)

    # Statistics
    likes = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Reply(id={self.id}, comment_id={self.comment_id})>"
