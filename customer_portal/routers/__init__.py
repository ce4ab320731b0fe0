# Routers package
from . import auth_router
from . import session_router
from . import companies_router
from . import profile_router
from . import guard_router

__all__ = [
    "auth_router",
    "session_router",
    "companies_router",
    "profile_router",
    "guard_router",
]
