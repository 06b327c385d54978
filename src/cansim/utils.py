from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd
import requests

from cansim.config import DEFAULT_HEADERS


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def new_session() -> requests.Session:
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    return session


def safe_request(
    session: requests.Session,
    url: str,
    method: str = "GET",
    params: Optional[Dict[str, Any]] = None,
    json_body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: int = 120,
    retries: int = 3,
    backoff: float = 1.7,
    stream: bool = False,
) -> requests.Response:
    """
    Resilient HTTP request with retry/backoff for transient failures.
    Retries on: 429, 5xx, and network exceptions. The last non-transient
    response is returned unchecked so callers can shape their own error.
    """
    method = method.upper().strip()

    for attempt in range(1, retries + 1):
        try:
            resp = session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=timeout,
                stream=stream,
            )
        except requests.RequestException:
            if attempt < retries:
                time.sleep(backoff ** (attempt - 1))
                continue
            raise

        if resp.status_code in (429, 500, 502, 503, 504) and attempt < retries:
            time.sleep(backoff ** (attempt - 1))
            continue
        return resp

    raise RuntimeError("safe_request exhausted retries without a response.")


def download_to(session: requests.Session, url: str, path: Path, chunk_size: int = 1 << 20) -> Path:
    ensure_dir(path.parent)
    with safe_request(session, url, stream=True) as resp:
        resp.raise_for_status()
        with path.open("wb") as fh:
            for chunk in resp.iter_content(chunk_size=chunk_size):
                if chunk:
                    fh.write(chunk)
    return path


def save_metadata(metadata: Dict[str, Any], path: Path) -> None:
    ensure_dir(path.parent)
    path.write_text(json.dumps(metadata, ensure_ascii=False, indent=2, default=str), encoding="utf-8")


def load_metadata(path: Path) -> Dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def _with_ext(basepath: Path, ext: str) -> Path:
    # names may carry dots of their own, so never use with_suffix here
    return basepath.parent / f"{basepath.name}{ext}"


def write_outputs(
    df: pd.DataFrame,
    out_basepath: Path,
    write_parquet: bool = True,
    write_csv: bool = True,
) -> Dict[str, Any]:
    """
    Writes df to CSV and/or Parquet using out_basepath without suffix.
    Returns dict with output file paths and warnings.
    """
    ensure_dir(out_basepath.parent)
    outputs: Dict[str, Any] = {"files": [], "warnings": []}
    pq_path = _with_ext(out_basepath, ".parquet")
    csv_path = _with_ext(out_basepath, ".csv")

    # only this run's files may remain; resolve_output prefers parquet
    for stale in (pq_path, csv_path):
        stale.unlink(missing_ok=True)

    if write_parquet:
        try:
            df.to_parquet(pq_path, index=False)
            outputs["files"].append(str(pq_path))
        except Exception as exc:  # noqa: BLE001
            pq_path.unlink(missing_ok=True)
            outputs["warnings"].append(f"Parquet write failed: {exc}")
            write_csv = True

    if write_csv:
        df.to_csv(csv_path, index=False, encoding="utf-8")
        outputs["files"].append(str(csv_path))

    return outputs


def resolve_output(out_basepath: Path) -> Optional[Path]:
    """Parquet if present, else CSV, else None."""
    for suffix in (".parquet", ".csv"):
        p = _with_ext(out_basepath, suffix)
        if p.exists():
            return p
    return None


def read_output(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
    raise ValueError(f"Unsupported ext: {path.suffix}")
