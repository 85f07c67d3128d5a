"""FastAPI routers acting as controllers in the MVC architecture."""

from . import generation

__all__ = ["generation"]
