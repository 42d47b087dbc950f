from .base import MemoryRepository

__all__ = ["MemoryRepository"]
