"""Flow geometry and particle-trip simulation for county food flows."""

__version__ = "0.1.0"
