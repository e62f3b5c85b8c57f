from __future__ import annotations

import argparse
import csv
import json
import os
import sys
from datetime import datetime
from typing import Dict, Iterable, List, Optional

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

REQUIRED_HEADERS = ("date", "channel", "brand", "revenue")


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


def normalize_date(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if not value:
        return None
    for fmt in ("%Y-%m-%d", "%m/%d/%y", "%m/%d/%Y"):
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return None


def normalize_revenue(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    value = value.strip().replace("$", "").replace(",", "")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def read_rows(csv_path: str) -> Iterable[Dict[str, str]]:
    with open(csv_path, "r", encoding="utf-8-sig", newline="") as csv_file:
        reader = csv.DictReader(csv_file)
        headers = [str(name or "").strip().lower() for name in reader.fieldnames or []]
        missing = [name for name in REQUIRED_HEADERS if name not in headers]
        if missing:
            raise SystemExit(f"Missing required columns: {', '.join(missing)}")
        for row in reader:
            yield {str(key or "").strip().lower(): (value or "") for key, value in row.items()}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a Date/Channel/Brand/Revenue sales CSV.")
    parser.add_argument("csv_path", help="Path to the sales CSV file")
    parser.add_argument("--batch-size", type=int, default=None, help="Rows per upsert batch")
    parser.add_argument(
        "--env-file",
        default=os.path.join(PROJECT_ROOT, ".env"),
        help="Path to .env file.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Validate without saving.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    load_env_file(os.path.abspath(args.env_file))

    from src.api.dependencies import get_sales_data_service
    from src.core.logging import configure_logging
    from src.models.sales import SalesRecord
    from src.services.sales_data_service import build_source_id

    configure_logging()
    records: List[SalesRecord] = []
    skipped: List[int] = []
    for index, row in enumerate(read_rows(args.csv_path)):
        record_date = normalize_date(row.get("date"))
        revenue = normalize_revenue(row.get("revenue"))
        channel = row.get("channel", "").strip()
        brand = row.get("brand", "").strip()
        if not record_date or revenue is None or not channel or not brand:
            skipped.append(index + 2)
            continue
        sku = row.get("sku", "").strip() or None
        records.append(
            SalesRecord(
                date=record_date,
                channel=channel,
                brand=brand,
                revenue=revenue,
                sku=sku,
                product_name=row.get("product_name", "").strip() or None,
                units=normalize_revenue(row.get("units")),
                source_id=build_source_id(record_date, channel, brand, sku, index),
            )
        )

    summary: Dict[str, object] = {
        "validRows": len(records),
        "skippedRows": len(skipped),
        "skippedLines": skipped[:20],
    }
    if not args.dry_run:
        service = get_sales_data_service()
        result = service.batch_save_sales_data(records, batch_size=args.batch_size)
        summary["upload"] = result.to_payload()
    print(json.dumps(summary, indent=2, default=str))


if __name__ == "__main__":
    main()
