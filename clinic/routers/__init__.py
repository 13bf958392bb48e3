# clinic/routers/__init__.py
from . import health
from . import auth
from . import public
from . import availability
from . import appointments
from . import patients

__all__ = ["health", "auth", "public", "availability", "appointments", "patients"]
