from __future__ import annotations

import argparse
import json
import os
import sys

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print the KPI summary for one dashboard view.")
    parser.add_argument("--view", default="monthly", choices=["annual", "quarterly", "monthly"])
    parser.add_argument("--year", type=int, default=None)
    parser.add_argument("--period", default=None, help="Quarter (Q1..Q4) for quarterly views.")
    parser.add_argument("--month", type=int, default=None)
    parser.add_argument("--brand", default="All Brands")
    parser.add_argument(
        "--include-records",
        action="store_true",
        help="Include aggregated records in the output.",
    )
    parser.add_argument(
        "--env-file",
        default=os.path.join(PROJECT_ROOT, ".env"),
        help="Path to .env file.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    load_env_file(os.path.abspath(args.env_file))

    from src.api.dependencies import get_kpi_service
    from src.core.logging import configure_logging
    from src.shared.time import build_view

    configure_logging()
    service = get_kpi_service()
    view = build_view(args.view, year=args.year, period=args.period, month=args.month)
    result = service.get_kpis(view, brand=args.brand)
    payload = result.to_payload()
    if not args.include_records:
        payload.pop("aggregatedRecords", None)
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":
    main()
