"""
Related-items pagination.
"""
from .walker import RelatedVideoWalker

__all__ = [
    "RelatedVideoWalker",
]
