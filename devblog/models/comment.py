from sqlalchemy import Column, ForeignKey, Integer, Text

from devblog.core.database import Base, TimestampMixin


class Comment(TimestampMixin, Base):
    __tablename__ = "comments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Content
    body = Column(Text, nullable=False)

    # Statistics
    likes = Column(Integer, default=0, nullable=False)
    replies = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return (
            f"<Comment(id={self.id}, post_id={self.post_id}, author_id={self.author_id})>"
        )
