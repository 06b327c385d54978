"""
Download a full NDM table bundle, fold in its metadata and cache the result.

Cache layout, one directory per (table, language) under cache_dir():

    14100287-eng/
        data.parquet            annotated table
        cube_info.parquet       \
        dimensions.parquet       |
        survey.parquet           |  metadata sections
        subject.parquet          |
        notes.parquet           /
        column_<position>.parquet   member table + hierarchy, one per dimension
        run.json                run record (dimensions, annotation report, outputs)

CSV is written instead of parquet when parquet fails.
"""

from __future__ import annotations

import logging
import tempfile
import warnings
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pandas as pd
import requests

from cansim.config import FULL_TABLE_ZIP_URL, NA_STRINGS, OVERVIEW_MEMBER_PREVIEW, cache_dir
from cansim.errors import MalformedMetadataError, UnannotatedTableWarning, UnknownColumnError
from cansim.pipeline import EnrichedTable, fold_in_metadata, unannotated
from cansim.sections import read_metadata_sheet
from cansim.tables import (
    cleaned_ndm_table_number,
    file_path_for_table_language,
    labels_for,
    language_key,
    naked_ndm_table_number,
)
from cansim.utils import download_to, load_metadata, new_session, read_output, resolve_output, save_metadata, write_outputs

logger = logging.getLogger(__name__)

RUN_RECORD = "run.json"
DATA_ARTIFACT = "data"


# -----------------------------
# Paths
# -----------------------------

def table_cache_dir(table_number: str, language: str = "english") -> Path:
    return cache_dir() / file_path_for_table_language(table_number, language)


def _column_artifact(position: int) -> str:
    return f"column_{position}"


# -----------------------------
# Parsing
# -----------------------------

def read_table_data(path: Path, language: str = "english") -> pd.DataFrame:
    """Read the long-format data CSV; every field text except the numeric value column."""
    text = labels_for(language)
    data = pd.read_csv(
        path,
        sep=text.csv_sep,
        dtype=str,
        na_values=NA_STRINGS,
        keep_default_na=False,
        encoding="utf-8-sig",
    )
    for col in data.columns:
        data[col] = data[col].str.strip()
    if text.value in data.columns:
        raw = data[text.value]
        if text.csv_sep == ";":
            raw = raw.str.replace(",", ".", regex=False)
        data[text.value] = pd.to_numeric(raw, errors="coerce")
    return data


def _coerce_cached_data(data: pd.DataFrame, language: str) -> pd.DataFrame:
    text = labels_for(language)
    if text.value in data.columns and not pd.api.types.is_numeric_dtype(data[text.value]):
        data[text.value] = pd.to_numeric(data[text.value], errors="coerce")
    return data


# -----------------------------
# Cache writes
# -----------------------------

def write_cache(enriched: EnrichedTable, base: Path, table: str, language: str, source_url: str) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "table": table,
        "language": language_key(language),
        "source_url": source_url,
        "retrieved_at_local": datetime.now().isoformat(timespec="seconds"),
        "row_count": int(enriched.data.shape[0]),
        "column_count": int(enriched.data.shape[1]),
        "dimensions": [],
        "annotation": enriched.report,
        "output_files": [],
        "warnings": list(enriched.report["warnings"]),
    }

    def _write(df: pd.DataFrame, name: str) -> None:
        out = write_outputs(df, base / name, write_parquet=True, write_csv=False)
        record["output_files"].extend(out["files"])
        record["warnings"].extend(out["warnings"])

    _write(enriched.data, DATA_ARTIFACT)
    for name, frame in enriched.artifacts().items():
        _write(frame, name)

    members = enriched.column_members()
    for d in enriched.registry.dimensions:
        artifact = _column_artifact(d.position)
        _write(members[d.position], artifact)
        record["dimensions"].append({"position": d.position, "name": d.name, "artifact": artifact})

    save_metadata(record, base / RUN_RECORD)
    return record


def _download_and_fold(cleaned: str, language: str, session: requests.Session) -> Tuple[EnrichedTable, str]:
    text = labels_for(language)
    naked = naked_ndm_table_number(cleaned)
    path = file_path_for_table_language(cleaned, language)
    url = FULL_TABLE_ZIP_URL.format(path=path)

    with tempfile.TemporaryDirectory(prefix="cansim-") as tmp:
        zip_path = download_to(session, url, Path(tmp) / f"{path}.zip")
        exdir = Path(tmp) / path
        with zipfile.ZipFile(zip_path) as zf:
            zf.extractall(exdir)

        logger.info("Parsing data")
        data = read_table_data(exdir / f"{naked}.csv", language)

        logger.info("Folding in metadata")
        sheet = read_metadata_sheet(exdir / f"{naked}_MetaData.csv", sep=text.csv_sep)

    key = language_key(language)
    try:
        enriched = fold_in_metadata(data, sheet, language=key)
    except MalformedMetadataError as exc:
        if key == "en":
            raise exc.for_table(cleaned) from exc
        # non-English metadata layouts are best effort: keep the data, drop the annotation
        msg = f"Returning table {cleaned} unannotated: {exc}"
        logger.warning(msg)
        warnings.warn(msg, UnannotatedTableWarning, stacklevel=3)
        enriched = unannotated(data, key, msg)
    return enriched, url


# -----------------------------
# Public retrieval
# -----------------------------

def get_cansim_ndm(
    table_number: str,
    language: str = "english",
    refresh: bool = False,
    session: Optional[requests.Session] = None,
) -> pd.DataFrame:
    """
    Annotated data table for an NDM table number.

    Served from the cache unless refresh is set or nothing is cached yet.
    """
    session = session or new_session()
    cleaned = cleaned_ndm_table_number(table_number, session=session)
    logger.info("Accessing CANSIM NDM product %s", cleaned)

    base = table_cache_dir(cleaned, language)
    data_path = resolve_output(base / DATA_ARTIFACT)
    if refresh or data_path is None or not (base / RUN_RECORD).exists():
        enriched, url = _download_and_fold(cleaned, language, session)
        record = write_cache(enriched, base, cleaned, language, url)
        for w in record["warnings"]:
            logger.debug("[%s] %s", cleaned, w)
        return enriched.data

    return _coerce_cached_data(read_output(data_path), language)


def get_cansim(
    table_number: str,
    language: str = "english",
    refresh: bool = False,
    session: Optional[requests.Session] = None,
) -> pd.DataFrame:
    """Annotated data table for an NDM or old CANSIM table number."""
    return get_cansim_ndm(table_number, language=language, refresh=refresh, session=session)


# -----------------------------
# Cached metadata accessors
# -----------------------------

def _ensure_cached(table_number: str, language: str, refresh: bool) -> Tuple[str, Path, Dict[str, Any]]:
    cleaned = cleaned_ndm_table_number(table_number)
    base = table_cache_dir(cleaned, language)
    if refresh or not (base / RUN_RECORD).exists():
        get_cansim_ndm(cleaned, language=language, refresh=refresh)
    return cleaned, base, load_metadata(base / RUN_RECORD)


def _read_artifact(base: Path, name: str) -> pd.DataFrame:
    path = resolve_output(base / name)
    if path is None:
        raise FileNotFoundError(f"Missing cached artifact '{name}' in {base}")
    return read_output(path)


def get_cansim_table_info(table_number: str, language: str = "english", refresh: bool = False) -> pd.DataFrame:
    _, base, _ = _ensure_cached(table_number, language, refresh)
    return _read_artifact(base, "cube_info")


def get_cansim_table_survey(table_number: str, language: str = "english", refresh: bool = False) -> pd.DataFrame:
    _, base, _ = _ensure_cached(table_number, language, refresh)
    return _read_artifact(base, "survey")


def get_cansim_table_subject(table_number: str, language: str = "english", refresh: bool = False) -> pd.DataFrame:
    _, base, _ = _ensure_cached(table_number, language, refresh)
    return _read_artifact(base, "subject")


def get_cansim_table_notes(table_number: str, language: str = "english", refresh: bool = False) -> pd.DataFrame:
    _, base, _ = _ensure_cached(table_number, language, refresh)
    return _read_artifact(base, "notes")


def get_cansim_column_list(table_number: str, language: str = "english", refresh: bool = False) -> pd.DataFrame:
    _, base, _ = _ensure_cached(table_number, language, refresh)
    return _read_artifact(base, "dimensions")


def get_cansim_column_categories(
    table_number: str,
    column: str,
    language: str = "english",
    refresh: bool = False,
) -> pd.DataFrame:
    """Member table of one dimension, with its hierarchy paths."""
    cleaned, base, record = _ensure_cached(table_number, language, refresh)
    for d in record["dimensions"]:
        if d["name"] == column:
            return _read_artifact(base, d["artifact"])
    raise UnknownColumnError(column, table=cleaned)


def get_cansim_table_overview(table_number: str, language: str = "english", refresh: bool = False) -> str:
    """Title, reference period, frequency and a preview of each column's categories."""
    text = labels_for(language)
    cleaned, base, record = _ensure_cached(table_number, language, refresh)

    info = _read_artifact(base, "cube_info")
    row = info.iloc[0] if not info.empty else pd.Series(dtype=str)
    out = (
        f"{row.get(text.cube_title, '')}\n"
        f"CANSIM Table {cleaned}\n"
        f"Start Date: {row.get(text.start_period, '')}, "
        f"End Date: {row.get(text.end_period, '')}, "
        f"Frequency: {row.get(text.frequency, '')}\n"
    )

    for d in record["dimensions"]:
        categories = _read_artifact(base, d["artifact"])
        names = categories[text.member_name].astype(str).tolist()
        out += f"\nColumn {d['name']} ({len(names)})\n"
        out += ", ".join(names[:OVERVIEW_MEMBER_PREVIEW])
        if len(names) > OVERVIEW_MEMBER_PREVIEW:
            out += ", ..."
        out += "\n"

    logger.info("%s", out)
    return out
