from sqlalchemy import Column, Enum, ForeignKey, Integer, UniqueConstraint

from devblog.core.database import Base, TimestampMixin
from devblog.models.enums import ReactionTarget


class Like(TimestampMixin, Base):
    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)

    # What is liked: the post itself (target_id == post_id), a comment or a reply
    target_type = Column(
        Enum(
            ReactionTarget,
            values_callable=lambda e: [m.value for m in e],
            name="reaction_target",
        ),
        nullable=False,
    )
    target_id = Column(Integer, nullable=False)

    # One like per user per target
    __table_args__ = (
        UniqueConstraint(
            "user_id", "post_id", "target_type", "target_id", name="unique_like"
        ),
    )

    def __repr__(self):
        return (
            f"<Like(user_id={self.user_id}, post_id={self.post_id}, "
            f"target={self.target_type.value}:{self.target_id})>"
        )
