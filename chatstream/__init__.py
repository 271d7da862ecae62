"""
Streaming chat client for an unframed token-stream protocol.
"""

__version__ = "0.1.0"
