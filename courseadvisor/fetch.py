from __future__ import annotations

import argparse
import json
import time
from pathlib import Path
from typing import Any, Iterable

import requests

from courseadvisor import config


# ---------------------------------------------------------------------------
# Paths & URLs
# ---------------------------------------------------------------------------

RAW_DIR = config.DATA_DIR / "raw"

API_BASE = "https://api.kth.se/api/kopps/v2"


def detail_url(code: str) -> str:
    return f"{API_BASE}/course/{code}/detailedinformation"


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def _fetch_detailed_information(code: str, session: requests.Session) -> dict[str, Any]:
    """
    Download the detailed information document of one course.
    """
    resp = session.get(detail_url(code), timeout=30)
    resp.raise_for_status()
    return resp.json()


def fetch_courses(
    codes: Iterable[str],
    raw_dir: Path = RAW_DIR,
    refresh: bool = False,
    sleep_seconds: float = 0.2,
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    """
    Fetch every course (cached as raw JSON) and return catalog descriptors.

    Courses that fail to download are reported and left out.
    """
    raw_dir.mkdir(parents=True, exist_ok=True)
    http = session or requests.Session()

    # Deduplicate & keep order for stable output
    wanted: list[str] = []
    for code in codes:
        c = code.strip().upper()
        if c and c not in wanted:
            wanted.append(c)

    print(f"Fetching {len(wanted)} courses")

    descriptors: list[dict[str, Any]] = []
    for code in wanted:
        cache_file = raw_dir / f"{code}.json"

        data = None
        if cache_file.exists() and not refresh:
            try:
                data = json.loads(cache_file.read_text(encoding="utf-8"))
                print(f"SKIP  {code}")
            except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
                # unreadable cache: download again
                print(f"STALE {code}: {exc}")

        if data is None:
            print(f"FETCH {code}")
            try:
                data = _fetch_detailed_information(code, http)
            except (requests.RequestException, ValueError) as exc:
                print(f"FAIL  {code}: {exc}")
                continue
            cache_file.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            time.sleep(sleep_seconds)

        descriptors.append({"detailedInformation": data})

    return descriptors


def write_catalog(descriptors: list[dict[str, Any]], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(descriptors, ensure_ascii=False, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# CLI entry
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="courseadvisor.fetch", description="Download course data into the catalog file")
    p.add_argument("codes", nargs="+", help="Course codes (e.g. DD2424 DT2212)")
    p.add_argument("--out", type=Path, default=None, help="Catalog file to write (default: configured catalog)")
    p.add_argument("--refresh", action="store_true", help="Re-fetch and overwrite cached JSON files")
    p.add_argument("--sleep", type=float, default=0.2, help="Sleep seconds between requests")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    out = args.out or config.catalog_path()
    descriptors = fetch_courses(args.codes, refresh=args.refresh, sleep_seconds=args.sleep)
    write_catalog(descriptors, out)
    print(f"Catalog written: {len(descriptors)} courses -> {out}")


if __name__ == "__main__":
    main()
