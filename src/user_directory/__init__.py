"""
User directory backend: reconciles a demo REST user API with a local snapshot
"""

__version__ = "1.0.0"
