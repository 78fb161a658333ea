from .base import BaseModel, Record

__all__ = [
    "BaseModel",
    "Record",
]
