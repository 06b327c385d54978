"""Thin client for the Statistics Canada Web Data Service (WDS) REST endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd
import requests

from cansim.config import WDS_BASE
from cansim.errors import DownloadError
from cansim.tables import cleaned_ndm_language, naked_ndm_table_number
from cansim.utils import new_session, safe_request

logger = logging.getLogger(__name__)

CUBE_METADATA_FIELDS = [
    "productId",
    "cansimId",
    "cubeTitleEn",
    "cubeTitleFr",
    "cubeStartDate",
    "cubeEndDate",
    "nbSeriesCube",
    "nbDatapointsCube",
    "archiveStatusCode",
    "archiveStatusEn",
    "archiveStatusFr",
    "subjectCode",
    "surveyCode",
    "dimension",
]


def _checked_json(resp: requests.Response) -> Any:
    if resp.status_code != 200:
        raise DownloadError(resp.url, resp.status_code, resp.text[:500])
    return resp.json()


def _flatten(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        items = value.values() if isinstance(value, dict) else value
        parts: List[str] = []
        for item in items:
            flat = _flatten(item)
            if flat is not None:
                parts.append(flat)
        return ",".join(parts)
    return str(value)


def get_cansim_cube_metadata(
    table_numbers: Union[str, Sequence[str]],
    session: Optional[requests.Session] = None,
) -> pd.DataFrame:
    """
    Cube metadata for one or more tables. Tables the service fails on are
    logged and left out of the result.
    """
    if isinstance(table_numbers, str):
        table_numbers = [table_numbers]
    session = session or new_session()
    body = [{"productId": int(naked_ndm_table_number(t, session=session))} for t in table_numbers]

    resp = safe_request(session, f"{WDS_BASE}/getCubeMetadata", method="POST", json_body=body)
    payload = _checked_json(resp)

    ok = [d for d in payload if d.get("status") == "SUCCESS"]
    failed = [d for d in payload if d.get("status") != "SUCCESS"]
    if failed:
        logger.warning("Failed to load metadata for %d tables", len(failed))
        for d in failed:
            logger.warning("%s", d.get("object"))

    rows: List[Dict[str, Optional[str]]] = []
    for d in ok:
        obj = d.get("object") or {}
        rows.append({f: _flatten(obj.get(f)) for f in CUBE_METADATA_FIELDS})
    return pd.DataFrame(rows, columns=CUBE_METADATA_FIELDS)


def get_cansim_table_url(
    table_number: str,
    language: str = "english",
    session: Optional[requests.Session] = None,
) -> str:
    """Download URL of the full-table CSV bundle, as published by the service."""
    session = session or new_session()
    lang = cleaned_ndm_language(language)[:2]
    url = f"{WDS_BASE}/getFullTableDownloadCSV/{naked_ndm_table_number(table_number, session=session)}/{lang}"
    return _checked_json(safe_request(session, url))["object"]


def get_cansim_changed_tables(
    start_date: str,
    end_date: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> pd.DataFrame:
    """Tables modified or updated on or after start_date (YYYY-MM-DD)."""
    session = session or new_session()
    url = f"{WDS_BASE}/getChangedCubeList/{start_date}"
    if end_date:
        url = f"{url}/{end_date}"
    payload = _checked_json(safe_request(session, url))
    objects = payload.get("object") or []
    return pd.DataFrame(
        [{"productId": o.get("productId"), "releaseTime": o.get("releaseTime")} for o in objects],
        columns=["productId", "releaseTime"],
    )
