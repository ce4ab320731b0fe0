# Schemas package (re-export feature modules for stable imports)
from .auth.auth import *
from .session.session import *
from .companies.company import *
from .profile.profile import *
from .guard.guard import *
