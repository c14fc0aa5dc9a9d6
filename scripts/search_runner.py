"""
Search runner: sends a suite of sample queries to /search and prints the
ranked participant ids, strategy and warnings for each.

Usage:
  ROSTER_SEARCH_URL=http://localhost:8000 python scripts/search_runner.py

If ROSTER_SEARCH_URL is not set, defaults to http://localhost:8000.
"""

from __future__ import annotations

import os
import sys
from typing import Dict, List

import httpx


BASE_URL = os.getenv("ROSTER_SEARCH_URL", "http://localhost:8000").rstrip("/")
ROUTE = "/search"


QUERIES: Dict[str, List[str]] = {
    "role": [
        "designer",
        "engineer",
        "product manager",
        "founder",
    ],
    "japanese": [
        "デザイナー",
        "エンジニア",
        "機械学習",
        "ダンス",
    ],
    "skills": [
        "python",
        "react",
        "blockchain",
        "robotics",
    ],
    "typos": [
        "pythom",
        "desiner",
        "enjinia",
        "javascrpt",
    ],
    "mixed": [
        "AI エンジニア",
        "UI/UX デザイナー",
        "react native mobile",
    ],
}


def run_suite() -> int:
    errors = 0
    base = BASE_URL
    print(f"Querying {base}{ROUTE}\n")
    with httpx.Client(timeout=30.0) as client:
        for section, queries in QUERIES.items():
            print(f"=== {section.upper()} ===")
            for q in queries:
                try:
                    resp = client.get(f"{base}{ROUTE}", params={"q": q})
                    resp.raise_for_status()
                    data = resp.json()
                    results = data.get("results", [])
                    debug = data.get("debug_info", {})

                    print(f"- {q}")
                    print(f"  strategy: {debug.get('search_strategy')}  language: {debug.get('language_detected')}")
                    print(f"  results ({data.get('total_results', 0)}): "
                          f"{[(r['id'], round(r['score'], 3)) for r in results[:8]]}")
                    if data.get("warnings"):
                        print(f"  warnings: {data['warnings']}")
                except httpx.HTTPError as e:
                    errors += 1
                    print(f"- {q}")
                    print(f"  ERROR: {e}")
            print()
    print(f"Done. Errors: {errors}")
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(run_suite())
