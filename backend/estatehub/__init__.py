"""EstateHub backend: authentication and session lifecycle."""

__version__ = "0.1.0"
