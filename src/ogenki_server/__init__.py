"""ogenki-server: wellness check-in API for tracked persons and their families."""

__version__ = "0.1.0"
