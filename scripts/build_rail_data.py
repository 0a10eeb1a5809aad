"""
Build the precomputed rail data file from a GTFS feed.

Downloads a GTFS zip (or uses a local one), extracts it and writes
data/precomputed_rail_data.json with stations, directed edges, closest
stations and route station lists.

Usage:
    python scripts/build_rail_data.py --url https://example.org/gtfs.zip
    python scripts/build_rail_data.py --zip feed.zip --output data/rail.json
"""

import argparse
import os
import tempfile
import zipfile
from pathlib import Path

import requests
from tqdm import tqdm

from railradar.config import RAIL_DATA_FILE, settings
from railradar.logging_config import setup_logger
from railradar.store.builder import build_rail_data
from railradar.store.json_store import write_rail_data

NEEDED_FILES = ["routes.txt", "trips.txt", "stop_times.txt", "stops.txt", "transfers.txt"]


def download_gtfs(url: str, temp_dir: str) -> str:
    """Download GTFS zip file."""
    print(f"Downloading GTFS from {url}...")
    response = requests.get(url, stream=True, timeout=120)
    response.raise_for_status()

    total_size = int(response.headers.get("content-length", 0))
    zip_path = os.path.join(temp_dir, "gtfs.zip")

    with open(zip_path, "wb") as f:
        with tqdm(total=total_size, unit="B", unit_scale=True, desc="Downloading") as pbar:
            for chunk in response.iter_content(chunk_size=8192):
                f.write(chunk)
                pbar.update(len(chunk))

    return zip_path


def extract_gtfs(zip_path: str, target_dir: str) -> Path:
    """Extract the needed GTFS files flat into target_dir."""
    print("Extracting GTFS files...")
    target = Path(target_dir)

    with zipfile.ZipFile(zip_path, "r") as zf:
        for name in zf.namelist():
            basename = os.path.basename(name)
            if basename in NEEDED_FILES:
                with zf.open(name) as src, open(target / basename, "wb") as dst:
                    dst.write(src.read())

    return target


def main():
    parser = argparse.ArgumentParser(description="Build rail data JSON from GTFS")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="GTFS zip URL")
    source.add_argument("--zip", type=Path, help="Local GTFS zip")
    parser.add_argument("--output", type=Path, default=RAIL_DATA_FILE)
    parser.add_argument(
        "--closest-radius",
        type=float,
        default=settings.closest_radius_km,
        help="Radius in km for closest stations",
    )
    args = parser.parse_args()
    setup_logger()

    with tempfile.TemporaryDirectory() as temp_dir:
        zip_path = download_gtfs(args.url, temp_dir) if args.url else str(args.zip)
        gtfs_dir = extract_gtfs(zip_path, temp_dir)
        data = build_rail_data(gtfs_dir, closest_radius_km=args.closest_radius)

    write_rail_data(data, args.output)
    print(f"\nDone! {len(data['stations'])} stations, {len(data['edges'])} edges")
    print(f"Output: {args.output}")


if __name__ == "__main__":
    main()
