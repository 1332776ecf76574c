"""HTTP routers."""

from .study import router

__all__ = ["router"]
