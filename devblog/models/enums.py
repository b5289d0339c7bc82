import enum


class Role(str, enum.Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @property
    def is_elevated(self) -> bool:
        return self in (Role.MODERATOR, Role.ADMIN)


class Sort(str, enum.Enum):
    LATEST = "latest"
    OLDEST = "oldest"
    TOP = "top"


class PostBlockType(str, enum.Enum):
    IMAGE = "Image"
    CODE_SNIPPET = "Code Snippet"
    CODE_OUTPUT = "Code Output"
    EDITOR = "Editor"  # text


class HeaderType(str, enum.Enum):
    H2 = "H2"
    H3 = "H3"


class ReactionTarget(str, enum.Enum):
    POST = "post"
    COMMENT = "comment"
    REPLY = "reply"
