# devblog/models/relations.py

from sqlalchemy.orm import relationship

from .comment import Comment
from .post import Post, PostTag
from .reply import Reply
from .user import User


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.

    Everything rendered in an API response is loaded with ``selectin`` so that
    async sessions never hit an implicit lazy load. Child rows (comments,
    replies, likes) are deleted explicitly inside the owning transaction,
    not through ORM cascades.
    """

    # --- Authors ---
    Post.author = relationship("User", lazy="selectin")
    Comment.author = relationship("User", lazy="selectin")
    Reply.author = relationship("User", lazy="selectin")

    # --- Post tags (owned by the post) ---
    Post.tag_links = relationship(
        "PostTag",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=PostTag.position,
    )
