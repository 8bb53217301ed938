"""
slotmatch - weekly recurring availability and overlap scoring.
"""

__version__ = "0.1.0"
