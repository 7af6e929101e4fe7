"""Authentication and session service for the board backend."""

__version__ = "0.1.0"
