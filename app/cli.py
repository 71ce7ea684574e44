#!/usr/bin/env python3
"""
Car Market Analytics CLI — listing summaries, exports, and the API server.

USAGE:
  python -m app.cli models                                  # List model folders
  python -m app.cli models --data-dir ./data

  python -m app.cli summary --model ランドクルーザー          # Dashboard numbers
  python -m app.cli summary --model ランドクルーザー --view 価格分布
  python -m app.cli summary --min-price 300 --max-price 800 --repair なし

  python -m app.cli export --model ランドクルーザー           # Filtered CSV (UTF-8)
  python -m app.cli export --format excel --output ./out
  python -m app.cli export --format json

  python -m app.cli serve                                   # Start API server
  python -m app.cli serve --port 8000
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.config import ALL_OPTION, DATA_FOLDER, DEFAULT_MODEL, EXPORT_FOLDER, VIEW_MODES
from app.data.filtering import man_to_yen, parse_mileage_option, parse_year_option
from app.data.loader import discover_csvs, discover_models
from app.data.store import DataStore
from app.data.schemas import FilterSpec, RepairFilter


def _load_store(args) -> DataStore:
    return DataStore(Path(args.data_dir)).load(args.model)


def _build_filter(args, store: DataStore) -> FilterSpec:
    """Build a FilterSpec from CLI args. Prices are given in 万円."""
    base = store.default_filter() if args.reset else FilterSpec()

    keywords = list(args.exclude or [])
    if not args.no_exclude_file:
        keywords += [k for k in store.exclude_keywords if k not in keywords]

    return FilterSpec(
        selected_grades=frozenset(args.grade or []),
        min_year=parse_year_option(args.min_year, base.min_year),
        max_year=parse_year_option(args.max_year, base.max_year),
        min_price=man_to_yen(args.min_price, base.min_price),
        max_price=man_to_yen(args.max_price, base.max_price),
        min_mileage=parse_mileage_option(args.min_mileage, base.min_mileage),
        max_mileage=parse_mileage_option(args.max_mileage, base.max_mileage),
        transmission=args.transmission,
        repair_history=RepairFilter(args.repair),
        exclude_keywords=tuple(keywords),
    )


def cmd_models(args):
    """List model folders and their CSV counts."""
    data_dir = Path(args.data_dir)
    models = discover_models(data_dir)
    if not models:
        print(f"No model folders under {data_dir}")
        return
    print(f"\nMODELS ({len(models)}):\n")
    for i, m in enumerate(models, 1):
        print(f"{i:<4}{m:<40}{len(discover_csvs(data_dir, m)):>5} CSV")


def _print_series(key: str, series: list[dict]):
    if not series:
        print("  (no data)")
        return
    if key == "mileage_vs_price":
        print(f"  {len(series):,} points")
        for p in series[:10]:
            print(f"  {p['x']:>8.1f}万km  {p['y']:>8.1f}万円")
        return
    for r in series:
        label = str(r.get("label", "")).replace("\n", " ")
        if key == "price_trend":
            metrics = "  ".join(
                f"{m}={r[m]:,.1f}" for m in ("average", "median", "min", "max") if m in r
            )
            print(f"  {label:<10}{r['count']:>6}台  {metrics}")
        elif key == "grade_analysis":
            print(f"  {r['grade'][:40]:<42}{r['count']:>5}台  {r['average']:>8.1f}万円")
        else:
            print(f"  {label:<16}{r['count']:>6}台")


def cmd_summary(args):
    """Print dashboard statistics for the filtered listings."""
    from app.analytics.dashboard import chart_series, resolve_view, summary_statistics

    print("\n" + "=" * 70)
    print("  CAR MARKET ANALYTICS — DASHBOARD SUMMARY")
    print("=" * 70)

    store = _load_store(args)
    spec = _build_filter(args, store)
    subset = store.filter(spec)
    s = summary_statistics(subset)

    print(f"\n  Model:   {store.model or '-'}")
    print(f"  Filter:  {spec.label}")
    print(f"  Rows:    {len(subset):,} of {store.row_count():,}")
    failures = store.diagnostic_summary()
    if failures["total"]:
        by_field = ", ".join(f"{k}={v}" for k, v in failures["by_field"].items())
        print(f"  Parse failures: {failures['total']:,} ({by_field})")

    print(f"\n  平均価格   {s['average_price']:>10,.1f} 万円")
    print(f"  中央価格   {s['median_price']:>10,.1f} 万円")
    print(f"  最低価格   {s['min_price']:>10,.1f} 万円")
    print(f"  最高価格   {s['max_price']:>10,} 万円")
    print(f"  総台数     {s['total_count']:>10,} 台")
    print(f"  グレード数 {s['unique_grade_count']:>10,}")
    print(f"  修復歴あり {s['repair_pct']:>10.1f} %")

    if args.view:
        key = resolve_view(args.view)
        print(f"\n  [{args.view}]")
        _print_series(key, chart_series(subset, key))
    print("=" * 70 + "\n")


def cmd_export(args):
    """Export the filtered listings (CSV), dashboard workbook (excel) or JSON."""
    from app.data.export import export_filename, write_csv
    from app.reports import dashboard_report

    store = _load_store(args)
    spec = _build_filter(args, store)
    out = Path(args.output)

    if args.format == "csv":
        write_csv(store.filter(spec), out / export_filename())
    elif args.format == "excel":
        stem = export_filename().replace("CarData_Export", "Dashboard").replace(".csv", ".xlsx")
        path = dashboard_report.generate_excel(store, out / stem, spec)
        print(f"  Saved: {path}")
    else:
        data = dashboard_report.generate_json(store, spec)
        out.mkdir(parents=True, exist_ok=True)
        path = out / export_filename().replace("CarData_Export", "Dashboard").replace(".csv", ".json")
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        print(f"  Saved: {path}")


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    print(f"\nStarting Car Market Analytics API on port {args.port}...")
    uvicorn.run("app.main:app", host="0.0.0.0", port=args.port, reload=args.reload,
                timeout_keep_alive=65)


def _add_data_args(p: argparse.ArgumentParser):
    p.add_argument("--data-dir", default=str(DATA_FOLDER), help=f"Data folder (default {DATA_FOLDER})")
    p.add_argument("--model", default=DEFAULT_MODEL, help="Model folder (default: first found)")


def _add_filter_args(p: argparse.ArgumentParser):
    p.add_argument("--grade", action="append", help="Exact grade; repeat for several")
    p.add_argument("--min-year", help="Year or 下限なし")
    p.add_argument("--max-year", help="Year or 上限なし")
    p.add_argument("--min-price", type=float, help="万円")
    p.add_argument("--max-price", type=float, help="万円")
    p.add_argument("--min-mileage", help="km, e.g. 10,000km")
    p.add_argument("--max-mileage", help="km, e.g. 120,000km")
    p.add_argument("--transmission", default=ALL_OPTION)
    p.add_argument("--repair", choices=[r.value for r in RepairFilter], default=RepairFilter.ALL.value,
                   help="修復歴")
    p.add_argument("--exclude", action="append", help="Exclude keyword; repeat for several")
    p.add_argument("--no-exclude-file", action="store_true", help="Ignore exclude_keywords.txt")
    p.add_argument("--reset", action="store_true", help="Start from the dataset's own ranges")


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Car Market Analytics — used-car listing analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # models subcommand
    models_parser = subparsers.add_parser("models", help="List model folders")
    models_parser.add_argument("--data-dir", default=str(DATA_FOLDER))
    models_parser.set_defaults(func=cmd_models)

    # summary subcommand
    summary_parser = subparsers.add_parser("summary", help="Print dashboard statistics")
    _add_data_args(summary_parser)
    _add_filter_args(summary_parser)
    summary_parser.add_argument("--view", choices=list(VIEW_MODES), help="Also print one chart")
    summary_parser.set_defaults(func=cmd_summary)

    # export subcommand
    export_parser = subparsers.add_parser("export", help="Export filtered listings")
    _add_data_args(export_parser)
    _add_filter_args(export_parser)
    export_parser.add_argument("--format", choices=["csv", "excel", "json"], default="csv")
    export_parser.add_argument("--output", default=str(EXPORT_FOLDER),
                               help=f"Output directory (default {EXPORT_FOLDER})")
    export_parser.set_defaults(func=cmd_export)

    # serve subcommand
    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")), help="Port (default 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return

    args.func(args)

if __name__ == "__main__":
    main()
