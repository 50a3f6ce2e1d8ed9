from . import health, mistakes, review

__all__ = [
    "health",
    "mistakes",
    "review",
]
