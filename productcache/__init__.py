"""
productcache

Read-through, relation-aware Redis caching for products and their
time-bounded onsale records.
"""

from .constants import APP_NAME, APP_VERSION

__all__ = ["APP_NAME", "APP_VERSION"]
