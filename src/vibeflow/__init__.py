"""
VibeFlow - personal music library with a queue/history player
"""

__version__ = "0.1.0"
