"""Guild party slot assignment service and operator board."""

__version__ = "1.0.0"
