"""OmniFind - parallel volume scanner and in-memory file search."""

__version__ = "0.1.0"
