"""API routers package"""

from . import records
from . import processes
from . import interviews

__all__ = ["records", "processes", "interviews"]
