"""Wardrobe catalog: a JSON catalog of clothing photos plus folder maintenance jobs."""

__version__ = "0.1.0"
