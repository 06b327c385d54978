from __future__ import annotations

import logging
import re
import webbrowser
from io import BytesIO
from typing import Optional

import pandas as pd
import requests

from cansim.config import CONCORDANCE_URL, LABELS, TABLE_WEBPAGE_URL, MetadataLabels, cache_dir
from cansim.errors import LanguageError, TableNumberError
from cansim.utils import ensure_dir, new_session, safe_request

logger = logging.getLogger(__name__)

NDM_DIGITS_RE = re.compile(r"^\d{8}(\d{2})?$")

_LANGUAGES = {
    "en": "eng",
    "eng": "eng",
    "english": "eng",
    "fr": "fra",
    "fra": "fra",
    "french": "fra",
}


# -----------------------------
# Language
# -----------------------------

def cleaned_ndm_language(language: str) -> str:
    """'en'/'english' -> 'eng', 'fr'/'french' -> 'fra'."""
    key = str(language).strip().lower()
    if key not in _LANGUAGES:
        raise LanguageError(f"Unsupported language '{language}', use 'english' or 'french'.")
    return _LANGUAGES[key]


def language_key(language: str) -> str:
    return cleaned_ndm_language(language)[:2]


def labels_for(language: str) -> MetadataLabels:
    return LABELS[language_key(language)]


# -----------------------------
# Table numbers
# -----------------------------

def _digits(table_number: str) -> str:
    return re.sub(r"[^0-9]", "", str(table_number))


def cleaned_ndm_table_number(table_number: str, session: Optional[requests.Session] = None) -> str:
    """
    Normalise an NDM or old CANSIM table number to the 'xx-xx-xxxx' form.
    Accepts '14-10-0287-01', '1410028701', '14100287'; numbers of seven digits
    or fewer are treated as old CANSIM ids and resolved via the concordance.
    """
    digits = _digits(table_number)
    if not digits:
        raise TableNumberError(f"Invalid table number '{table_number}'.")
    if len(digits) <= 7:
        return cansim_old_to_new(digits, session=session)
    if not NDM_DIGITS_RE.match(digits):
        raise TableNumberError(f"Invalid NDM table number '{table_number}'.")
    d = digits[:8]
    return f"{d[:2]}-{d[2:4]}-{d[4:8]}"


def naked_ndm_table_number(table_number: str, session: Optional[requests.Session] = None) -> str:
    return cleaned_ndm_table_number(table_number, session=session).replace("-", "")


def file_path_for_table_language(table_number: str, language: str) -> str:
    return f"{naked_ndm_table_number(table_number)}-{cleaned_ndm_language(language)}"


# -----------------------------
# Old -> new concordance
# -----------------------------

def _load_concordance(session: Optional[requests.Session] = None) -> pd.DataFrame:
    path = cache_dir() / "cansim-correspondence.parquet"
    if path.exists():
        return pd.read_parquet(path)

    logger.info("Downloading CANSIM to NDM concordance")
    session = session or new_session()
    resp = safe_request(session, CONCORDANCE_URL)
    resp.raise_for_status()
    data = pd.read_csv(BytesIO(resp.content), encoding="utf-8-sig")
    ensure_dir(path.parent)
    data.to_parquet(path, index=False)
    return data


def cansim_old_to_new(old_table_number: str, session: Optional[requests.Session] = None) -> str:
    """Translate an old-format CANSIM table number (e.g. '282-0087') into its NDM number."""
    cleaned = f"{int(_digits(old_table_number) or 0):07d}"
    data = _load_concordance(session)

    hits = data.loc[pd.to_numeric(data["CANSIM_ID"], errors="coerce") == int(cleaned), "PRODUCT_ID"]
    if hits.empty:
        raise TableNumberError(f"Unable to match old CANSIM table number {cleaned}")
    n = str(int(hits.iloc[0]))
    return f"{n[:2]}-{n[2:4]}-{n[4:8]}"


# -----------------------------
# Web page
# -----------------------------

def table_webpage_url(table_number: str) -> str:
    return TABLE_WEBPAGE_URL.format(pid=f"{naked_ndm_table_number(table_number)}01")


def view_cansim_webpage(table_number: str) -> str:
    """Open the table's page on the Statistics Canada site in the default browser."""
    url = table_webpage_url(table_number)
    webbrowser.open(url)
    return url
