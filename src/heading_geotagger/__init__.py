"""Annotate time-ordered geotagged photos with their direction of travel."""

__version__ = "1.2.0"
