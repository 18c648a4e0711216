#!/usr/bin/env python3
"""
Export Smoke Test Script
========================

Standalone script to exercise a running export service over HTTP.

This script:
    1. Generates a test design with Pillow (gradient disc on transparency)
    2. Posts it to /api/export, once native and once composited
    3. Checks the returned dimensions and DPI tag
    4. Optionally writes the exported PNGs to disk

Prerequisites:
    - The service must be running at the configured URL
    - Install dependencies: pip install -e ".[scripts]"

Usage:
    python scripts/export_smoke.py
    python scripts/export_smoke.py --url http://localhost:8080 --width 4500 --height 5400
    python scripts/export_smoke.py --save-dir /tmp/exports
"""

import argparse
import base64
import io
import logging
import os
import sys
import time
from pathlib import Path

import requests
from PIL import Image, ImageDraw


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def make_design(size: int) -> str:
    """Draw a test design and return it as a PNG data URI."""
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    steps = 32
    for i in range(steps):
        inset = i * size // (2 * steps)
        shade = int(255 * i / steps)
        draw.ellipse(
            (inset, inset, size - inset - 1, size - inset - 1),
            fill=(shade, 80, 255 - shade, 255),
        )

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def post_export(url: str, body: dict, timeout: float) -> dict:
    """POST to /api/export and return the decoded JSON body."""
    start = time.time()
    response = requests.post(f"{url}/api/export", json=body, timeout=timeout)
    elapsed = time.time() - start

    logger.info(f"  HTTP {response.status_code} in {elapsed:.2f}s ({len(response.content) / 1024:.0f} KB)")
    payload = response.json()
    if response.status_code != 200:
        raise RuntimeError(f"Export failed: {payload.get('error')}")
    return payload


def open_result(data_uri: str) -> Image.Image:
    data = base64.b64decode(data_uri.split(",", 1)[1])
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def run_smoke(
    url: str,
    design_size: int,
    width: int,
    height: int,
    filter_descriptor: str,
    timeout: float,
    save_dir: Path = None,
) -> bool:
    """
    Run both export variants against the service.

    Returns:
        True when every check passed
    """
    logger.info("=" * 60)
    logger.info("Export Smoke Test")
    logger.info("=" * 60)
    logger.info(f"Service URL: {url}")
    logger.info(f"Design: {design_size}x{design_size}")
    logger.info(f"Canvas: {width}x{height}")
    logger.info(f"Filter: {filter_descriptor}")
    logger.info("=" * 60)

    health = requests.get(f"{url}/health", timeout=timeout)
    health.raise_for_status()
    logger.info(f"Service healthy: {health.json()}")

    image_data = make_design(design_size)
    passed = True

    logger.info("Native export")
    native = post_export(url, {"imageData": image_data, "filter": filter_descriptor}, timeout)
    native_image = open_result(native["exportedImage"])
    if native_image.size != (design_size, design_size):
        logger.error(f"  Unexpected size {native_image.size}")
        passed = False

    logger.info("Composite export")
    composite = post_export(url, {
        "imageData": image_data,
        "filter": filter_descriptor,
        "productWidth": width,
        "productHeight": height,
        "scale": 100,
        "position": {"x": 0, "y": 0},
    }, timeout)
    composite_image = open_result(composite["exportedImage"])
    dpi = composite_image.info.get("dpi", (0, 0))
    logger.info(f"  Dimensions: {composite['dimensions']}, file DPI: {dpi}")
    if composite_image.size != (width, height) or round(dpi[0]) != 300:
        logger.error("  Composite size or DPI mismatch")
        passed = False

    if save_dir is not None:
        save_dir.mkdir(parents=True, exist_ok=True)
        native_image.save(save_dir / "native.png")
        composite_image.save(save_dir / "composite.png", dpi=(300, 300))
        logger.info(f"Saved exports to {save_dir}")

    logger.info("=" * 60)
    if passed:
        logger.info("SMOKE TEST PASSED")
    else:
        logger.error("SMOKE TEST FAILED")
    return passed


def main():
    parser = argparse.ArgumentParser(
        description="Smoke test for a running design export service"
    )
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("DESIGN_EXPORT_URL", "http://localhost:8080"),
        help="Base URL of the service",
    )
    parser.add_argument(
        "--design-size",
        type=int,
        default=1000,
        help="Side of the generated test design (default: 1000)",
    )
    parser.add_argument("--width", type=int, default=4500, help="Product width (default: 4500)")
    parser.add_argument("--height", type=int, default=5400, help="Product height (default: 5400)")
    parser.add_argument(
        "--filter",
        type=str,
        default="brightness(1.05) contrast(1.1)",
        help="Filter descriptor",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Request timeout in seconds (default: 60)",
    )
    parser.add_argument("--save-dir", type=Path, default=None, help="Write exported PNGs here")

    args = parser.parse_args()

    try:
        ok = run_smoke(
            url=args.url.rstrip("/"),
            design_size=args.design_size,
            width=args.width,
            height=args.height,
            filter_descriptor=args.filter,
            timeout=args.timeout,
            save_dir=args.save_dir,
        )
    except (requests.RequestException, RuntimeError) as e:
        logger.error(f"Smoke test aborted: {e}")
        ok = False

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
