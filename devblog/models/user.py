from sqlalchemy import JSON, Column, DateTime, Enum, Integer, String, Text

from devblog.core.database import Base, TimestampMixin
from devblog.models.enums import Role


class User(TimestampMixin, Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)

    # Profile
    full_name = Column(String(100), nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    profile_image = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)

    # Authentication
    password = Column(String(255), nullable=False)  # bcrypt hash
    role = Column(
        Enum(Role, values_callable=lambda e: [m.value for m in e], name="user_role"),
        default=Role.USER,
        nullable=False,
    )

    password_reset_token = Column(String(255), nullable=True)
    password_reset_expires_at = Column(DateTime(timezone=True), nullable=True)
    refresh_tokens = Column(JSON, default=list, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
