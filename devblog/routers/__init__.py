from .comments import router as comments_router
from .posts import router as posts_router
from .replies import router as replies_router
from .users import router as users_router

routes = [
    users_router,
    posts_router,
    comments_router,
    replies_router,
]
