"""
Models package initialization
Import all models and setup relationships
"""

from .comment import Comment
from .enums import HeaderType, PostBlockType, ReactionTarget, Role, Sort
from .like import Like
from .post import Post, PostTag

# Import and setup relationships
from .relations import setup_relationships
from .reply import Reply
from .user import User

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "Comment",
    "HeaderType",
    "Like",
    "Post",
    "PostBlockType",
    "PostTag",
    "ReactionTarget",
    "Reply",
    "Role",
    "Sort",
    "User",
]
