#!/usr/bin/env python3
"""
Diagnostic tool to compare GPS extraction between exifread and exiftool.

Usage:
  python tools/compare_decoders.py <sample_dir> [<output_csv>]

Example:
  python tools/compare_decoders.py "D:\\Photos" gps_report.csv
  uv run python tools/compare_decoders.py . gps_report.csv

Output:
  CSV file with columns: file, exifread_lat, exifread_lon, exiftool_lat, exiftool_lon, distance_m, agree, notes
  One row per image.
"""

import csv
import sys
from pathlib import Path

from imnear import config
from imnear.exceptions import ExtractionError
from imnear.geo import distance
from imnear.metadata.extract import ExifReadDecoder, ExifToolDecoder
from imnear.scanning.filesystem import MediaScanner

# Decoders closer than this are considered in agreement
AGREE_WITHIN_M = 1.0


def run_decoder(decoder, path):
    """Returns (coords, error_text)."""
    try:
        return decoder.decode(path), ""
    except ExtractionError as e:
        return None, f"{decoder.name}: {e}"


def compare_file(path, primary, secondary):
    p_coords, p_err = run_decoder(primary, path)
    s_coords, s_err = run_decoder(secondary, path)

    dist = None
    if p_coords and s_coords:
        dist = distance(p_coords, s_coords)
        agree = dist <= AGREE_WITHIN_M
    else:
        agree = p_coords is None and s_coords is None and not p_err and not s_err

    notes = "; ".join(n for n in (p_err, s_err) if n)
    return [
        p_coords[0] if p_coords else None,
        p_coords[1] if p_coords else None,
        s_coords[0] if s_coords else None,
        s_coords[1] if s_coords else None,
        round(dist, 3) if dist is not None else None,
        int(agree),
        notes,
    ]


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    sample_dir = Path(argv[0]) if len(argv) > 0 else Path(".")
    out_csv = Path(argv[1]) if len(argv) > 1 else Path("gps_decoder_report.csv")

    if not sample_dir.is_dir():
        print(f"Error: {sample_dir} is not a directory", file=sys.stderr)
        sys.exit(1)

    # The comparison is about signs too, so honor 'S' here
    primary = ExifReadDecoder(honor_latitude_ref=True)
    secondary = ExifToolDecoder()

    print(f"Scanning {sample_dir} for images...")
    files = list(MediaScanner(config.IMAGE_EXTS).scan(sample_dir))
    print(f"Found {len(files)} images")

    disagreements = 0
    with out_csv.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([
            "file",
            "exifread_lat",
            "exifread_lon",
            "exiftool_lat",
            "exiftool_lon",
            "distance_m",
            "agree",
            "notes",
        ])

        for i, p in enumerate(files):
            rel_path = p.relative_to(sample_dir)
            print(f"[{i+1}/{len(files)}] Processing {rel_path}...", end=" ", flush=True)

            row = compare_file(p, primary, secondary)
            writer.writerow([str(rel_path)] + row)
            if not row[5]:
                disagreements += 1
            print("ok" if row[5] else "MISMATCH")

    print(f"\n{disagreements} mismatches. Report written to {out_csv}")


if __name__ == "__main__":
    main()
