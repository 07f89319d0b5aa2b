# Services module for the page scanner
# Contains configuration, batch scheduling and reporting

# Service implementations are in pagescan/services/impl/
# The ScanPipeline wires them from application_config.json:
# from pagescan.services.scan_pipeline import ScanPipeline

__all__ = []
