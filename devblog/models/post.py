from sqlalchemy import JSON, Column, ForeignKey, Integer, String, Text, UniqueConstraint

from devblog.core.database import Base, TimestampMixin


class Post(TimestampMixin, Base):
    __tablename__ = "posts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Content
    title = Column(String(255), unique=True, nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)
    cover = Column(Text, nullable=False)
    headers = Column(JSON, default=list, nullable=False)  # table of contents
    content = Column(JSON, default=list, nullable=False)  # ordered content blocks

    # Statistics
    likes = Column(Integer, default=0, nullable=False)
    comments = Column(Integer, default=0, nullable=False)  # comments + replies

    @property
    def tags(self):
        return [link.tag for link in self.tag_links]

    def __repr__(self):
        return f"<Post(id={self.id}, slug='{self.slug}')>"


class PostTag(Base):
    __tablename__ = "post_tags"

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    tag = Column(String(50), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)

    __table_args__ = (UniqueConstraint("post_id", "tag", name="unique_post_tag"),)

    def __repr__(self):
        return f"<PostTag(post_id={self.post_id}, tag='{self.tag}')>"
