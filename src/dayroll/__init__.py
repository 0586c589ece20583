"""
dayroll: a daily to-do list with profiles and automatic rollover of unfinished tasks.
"""

__version__ = "0.1.0"
