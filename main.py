"""
Page Scanner

Main entry point for the page code scanner.
Uses ScanPipeline to initialize all components from configuration.

Architecture:
- ScanPipeline: Reads config and creates decoder, renderer and services
- BatchScanService: Scans files one after another, pages in parallel
- ScanOrchestrator: Detection, ROI decode and full-page fallback per page
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from pagescan import __version__
from pagescan.core.errors import PageScanError
from pagescan.services.interfaces.batch_scan_service_interface import PageScanRecord
from pagescan.services.result_formatter import formatBatchReport, getSummary
from pagescan.services.scan_pipeline import ScanPipeline


def setupLogging(debugMode: bool = False) -> None:
    """
    Setup application logging.

    Args:
        debugMode: If True, set log level to DEBUG.
    """
    level = logging.DEBUG if debugMode else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def parseArgs(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Scan PDF pages for QR codes and barcodes against an expected structure",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pagescan samples/
  pagescan invoice.pdf --structure config/structures.json --structure-id default
  pagescan samples/ --output output/report.json --debug
        """
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        help="PDF files or directories containing PDF files"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default="config/application_config.json",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--structure", "-s",
        type=str,
        default=None,
        help="Expected structure file (default: structure.path from config)"
    )

    parser.add_argument(
        "--structure-id",
        type=str,
        default=None,
        help="Structure to use from the structure file"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write the JSON report to this file"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging and debug output"
    )

    return parser.parse_args(argv)


def printPage(record: PageScanRecord) -> None:
    """Print one finished page."""
    result = record.result
    codes = ", ".join(f"{c.codeType}={c.value}" for c in result.codes) or "-"
    print(f"  {record.frameId:<40} {result.status.value:<10} {codes}")


def writeReport(path: str, report: dict) -> None:
    """Write the JSON report, creating parent directories."""
    outputPath = Path(path)
    outputPath.parent.mkdir(parents=True, exist_ok=True)
    with open(outputPath, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2, ensure_ascii=False)


def main(argv=None) -> int:
    """Main entry point."""
    args = parseArgs(argv)

    # Setup logging first
    debugMode = args.debug or os.environ.get("DEBUG", "").lower() == "true"
    setupLogging(debugMode=debugMode)

    logger = logging.getLogger(__name__)
    logger.info(f"Starting page scanner v{__version__}")

    try:
        pipeline = ScanPipeline(args.config)
        if args.debug:
            pipeline.setDebugEnabled(True)
            logger.info(f"Debug output will be saved to: {pipeline.getDebugBasePath()}")

        structure = pipeline.loadStructure(args.structure, args.structure_id)
        filePaths = pipeline.collectInputFiles(args.inputs)
    except (PageScanError, ValueError, ImportError, RuntimeError) as e:
        logger.error(f"Scanner failed to start: {e}")
        return 2

    if not filePaths:
        logger.error("No input files to scan")
        return 2

    results = pipeline.run(filePaths, structure, onPageComplete=printPage)

    report = formatBatchReport(results)
    if args.output:
        writeReport(args.output, report)
        logger.info(f"Report written to: {args.output}")

    summary = getSummary(results)
    print("=" * 60)
    print(
        f"Files: {summary['totalFiles']} ({summary['unreadableFiles']} unreadable)  "
        f"Pages: {summary['totalPages']}"
    )
    print(
        f"Complete: {summary['completePages']}  Incomplete: {summary['incompletePages']}  "
        f"Failed: {summary['failedPages']}  Skipped: {summary['skippedPages']}"
    )
    print(f"Codes: {summary['totalCodes']}  Success rate: {summary['successRate']:.1f}%")
    print("=" * 60)

    allComplete = all(r.success for r in results)
    return 0 if allComplete else 1


if __name__ == "__main__":
    sys.exit(main())
