"""Multi-phase QR code and barcode scanner for rasterized document pages."""

__version__ = "1.0.0"
