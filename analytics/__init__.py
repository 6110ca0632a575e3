"""
Analytics: JSON search and feedback log
"""

from .search_log import SearchAnalytics

__all__ = ['SearchAnalytics']
