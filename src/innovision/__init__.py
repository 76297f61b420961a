"""
InnoVision School enrollment API.
"""

__version__ = "0.1.0"
