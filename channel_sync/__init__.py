"""Channel synchronization core for the property-management back office."""

__version__ = "1.0.0"
