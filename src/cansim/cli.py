from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from cansim.errors import CansimError
from cansim.levels import categories_for_level
from cansim.normalize import normalize_cansim_values
from cansim.retrieval import get_cansim, get_cansim_table_overview, table_cache_dir
from cansim.tables import cleaned_ndm_table_number, language_key
from cansim.utils import load_metadata, write_outputs
from cansim.wds import get_cansim_changed_tables


def _cmd_fetch(args: argparse.Namespace) -> int:
    data = get_cansim(args.table, language=args.language, refresh=args.refresh)
    if args.normalize:
        data = normalize_cansim_values(data)

    cleaned = cleaned_ndm_table_number(args.table)
    record = load_metadata(table_cache_dir(cleaned, args.language) / "run.json")

    print(f"FETCH SUMMARY ({cleaned}, {language_key(args.language)})")
    print(f"- rows={data.shape[0]} cols={data.shape[1]}")
    print(f"- annotated dimensions: {', '.join(record['annotation']['annotated_dimensions']) or '-'}")
    for name in record["annotation"]["unmatched_dimensions"]:
        print(f"  unmatched: {name}")

    if args.out:
        out = write_outputs(data, Path(args.out), write_parquet=not args.no_parquet)
        for f in out["files"]:
            print(f"Wrote: {f}")
        for w in out["warnings"]:
            print(f"Warning: {w}")
    return 0


def _cmd_overview(args: argparse.Namespace) -> int:
    print(get_cansim_table_overview(args.table, language=args.language, refresh=args.refresh))
    return 0


def _cmd_categories(args: argparse.Namespace) -> int:
    data = get_cansim(args.table, language=args.language, refresh=args.refresh)
    cats = categories_for_level(
        data,
        args.column,
        level=args.level,
        strict=args.strict,
        remove_duplicates=not args.keep_duplicates,
        language=language_key(args.language),
    )
    for c in cats:
        print(c)
    return 0


def _cmd_changed(args: argparse.Namespace) -> int:
    df = get_cansim_changed_tables(args.start_date)
    print(df.to_string(index=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cansim", description="Statistics Canada tables with folded-in metadata.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress messages.")
    sub = parser.add_subparsers(dest="command", required=True)

    def _table_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("table", help="NDM table number (e.g. 14-10-0287-01) or old CANSIM number.")
        p.add_argument("--language", default="english", help="english or french.")
        p.add_argument("--refresh", action="store_true", help="Ignore the cache and download again.")

    p_fetch = sub.add_parser("fetch", help="Download and annotate a table.")
    _table_args(p_fetch)
    p_fetch.add_argument("--out", default=None, help="Output base path (no suffix) for CSV/parquet export.")
    p_fetch.add_argument("--no-parquet", action="store_true", help="Skip parquet export.")
    p_fetch.add_argument("--normalize", action="store_true", help="Scale values and convert percentages to rates.")
    p_fetch.set_defaults(func=_cmd_fetch)

    p_over = sub.add_parser("overview", help="Print a table overview.")
    _table_args(p_over)
    p_over.set_defaults(func=_cmd_overview)

    p_cat = sub.add_parser("categories", help="List a column's categories at a hierarchy level.")
    _table_args(p_cat)
    p_cat.add_argument("column", help="Dimension column name.")
    p_cat.add_argument("--level", type=int, default=None, help="Hierarchy level, 0 is the top.")
    p_cat.add_argument("--strict", action="store_true", help="Only categories exactly at --level.")
    p_cat.add_argument("--keep-duplicates", action="store_true", help="Keep grouping categories covered by children.")
    p_cat.set_defaults(func=_cmd_categories)

    p_changed = sub.add_parser("changed", help="List tables changed since a date.")
    p_changed.add_argument("start_date", help="YYYY-MM-DD")
    p_changed.set_defaults(func=_cmd_changed)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except CansimError as exc:
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
