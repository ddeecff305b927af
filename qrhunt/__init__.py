"""Backend for a QR code scavenger hunt: stations, classes, scans and prize drawings."""

__version__ = "0.1.0"
