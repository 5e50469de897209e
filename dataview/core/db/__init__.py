from .pool import Database

__all__ = ["Database"]
