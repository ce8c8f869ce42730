#!/usr/bin/env python3
"""
Recording script - Generate fixtures by fetching URLs through a VCR.

Each URL is fetched with a GET in RECORD mode and its response stored as
get_<sha256>_<seqno>.vcr in the output directory. With --replay the same
URLs are read back from the fixtures instead, to check they are complete.

Usage:
    # Record a couple of URLs
    python scripts/record.py --url https://api.example.com/a --url https://api.example.com/b

    # Record the URLs listed in vcr.yaml (under "urls:")
    python scripts/record.py --config vcr.yaml --output-dir tests/fixtures

    # Verify the recorded fixtures replay
    python scripts/record.py --config vcr.yaml --output-dir tests/fixtures --replay
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import requests

from vcr_sdk import VCR, VCRError, load_config


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def fetch_urls(vcr: VCR, urls: List[str]) -> List[Dict[str, Any]]:
    """
    Fetch each URL through the VCR in its current mode.

    Args:
        vcr: Configured VCR client
        urls: URLs to GET, in order

    Returns:
        One result dict per URL
    """
    results = []

    for url in urls:
        seqno = vcr.seqno
        try:
            response = vcr.get(url)
            logger.info(f"{vcr.mode.value} {url} -> {response.status_code}")
            results.append({
                "url": url,
                "seqno": seqno,
                "status_code": response.status_code,
                "success": True,
            })
        except (VCRError, requests.RequestException) as e:
            logger.error(f"Failed to {vcr.mode.value} {url}: {e}")
            results.append({
                "url": url,
                "seqno": seqno,
                "error": str(e),
                "success": False,
            })

    return results


def main():
    parser = argparse.ArgumentParser(
        description="Record HTTP fixtures for a list of URLs",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to vcr.yaml configuration file",
    )
    parser.add_argument(
        "--url",
        action="append",
        default=[],
        help="URL to record (repeatable)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Fixture directory (defaults to the configured directory)",
    )
    parser.add_argument(
        "--replay",
        action="store_true",
        help="Replay the fixtures instead of recording them",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Report fixtures that get overwritten",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(args.config)
    urls = args.url or list(config.get("urls", []))
    if not urls:
        print("No URLs given. Use --url or list them under 'urls:' in vcr.yaml")
        sys.exit(1)

    output_dir = args.output_dir or config.directory
    if not output_dir.is_dir():
        print(f"Error: fixture directory {output_dir} does not exist")
        sys.exit(1)

    with VCR(output_dir, debug=args.debug or config.debug) as vcr:
        if not args.replay:
            vcr.record()
        results = fetch_urls(vcr, urls)

    successful = sum(1 for r in results if r["success"])
    failed = len(results) - successful

    print("\n" + "=" * 60)
    print("REPLAY SUMMARY" if args.replay else "RECORDING SUMMARY")
    print("=" * 60)
    print(f"Total URLs: {len(results)}")
    print(f"Successful: {successful}")
    print(f"Failed: {failed}")
    print(f"Fixture directory: {output_dir}")

    if failed > 0:
        print("\nFailed URLs:")
        for r in results:
            if not r["success"]:
                print(f"  - [{r['seqno']}] {r['url']}: {r['error']}")
        sys.exit(1)

    print("\nDone!")


if __name__ == "__main__":
    main()
