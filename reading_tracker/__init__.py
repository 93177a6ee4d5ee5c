"""
Reading progress and streak tracking service
"""

__version__ = "1.0.0"
