"""
mylinkbot - My Home Assistant redirect links for Discord
"""

__version__ = "0.1.0"
__logo__ = "🔗"
