"""
Storage layer for mirrored resources.
"""

from .mirror import MirrorStorage

__all__ = ['MirrorStorage']
