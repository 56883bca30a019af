"""Single-VM power control panel."""

__version__ = "0.1.0"
