"""Material takeoff service for PDF construction drawings."""

__version__ = "0.1.0"
