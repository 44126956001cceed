"""Fuel Finder: locate the user and rank nearby fuel stations by distance."""

__version__ = "0.1.0"
