from __future__ import annotations

import re
import warnings
from typing import Optional

import pandas as pd

from cansim.config import LABELS

YEAR_RE = re.compile(r"^\d{4}$")
YEAR_RANGE_RE = re.compile(r"^\d{4}/\d{4}$")
YEAR_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
YEAR_MONTH_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_ref_dates(ref: pd.Series, default_month: str, default_day: str) -> Optional[pd.Series]:
    sample = ref.dropna()
    if sample.empty:
        return None
    s = str(sample.iloc[0])
    ref = ref.astype("string")

    if YEAR_RE.match(s):
        text = ref + f"-{default_month}-{default_day}"
    elif YEAR_RANGE_RE.match(s):
        # year range, second year is the anchor
        text = ref.str.replace(r"^\d{4}/", "", regex=True) + f"-{default_month}-{default_day}"
    elif YEAR_MONTH_RE.match(s):
        text = ref + f"-{default_day}"
    elif YEAR_MONTH_DAY_RE.match(s):
        text = ref
    else:
        return None
    return pd.to_datetime(text, format="%Y-%m-%d", errors="coerce")


def normalize_cansim_values(
    data: pd.DataFrame,
    replacement_value: Optional[str] = None,
    normalize_percent: bool = True,
    default_month: str = "01",
    default_day: str = "01",
) -> pd.DataFrame:
    """
    Put values on a common scale: counts/dollars instead of thousands/millions.

    With no replacement_value the value column is overwritten and the scalar
    columns dropped; otherwise the scaled value goes to a new column and the
    scalar columns stay. Percentages become rates when normalize_percent is set.
    A Date column is derived from the reference period when its format is
    recognised.
    """
    text = LABELS["fr"] if LABELS["fr"].value in data.columns else LABELS["en"]
    target = replacement_value or text.value
    out = data.copy()

    value = pd.to_numeric(out[text.value], errors="coerce")
    if text.scalar_id in out.columns:
        value = value * (10.0 ** pd.to_numeric(out[text.scalar_id], errors="coerce"))
    out[target] = value

    if replacement_value is None:
        out = out.drop(columns=[c for c in (text.scalar_id, text.scalar_factor) if c in out.columns])

    if normalize_percent and text.uom in out.columns:
        uom = out[text.uom].astype("string")
        is_percent = uom.str.contains(text.percent_pattern, regex=True, na=False)
        out.loc[is_percent, target] = out.loc[is_percent, target] / 100.0
        out.loc[(uom == text.percent_label).fillna(False), text.uom] = text.rate_label

    if text.ref_date in out.columns:
        dates = _parse_ref_dates(out[text.ref_date], default_month, default_day)
        if dates is not None:
            out["Date"] = dates

    return out


def adjust_cansim_values_by_variable(data: pd.DataFrame, var: Optional[str] = None) -> pd.DataFrame:
    """Deprecated, use normalize_cansim_values."""
    warnings.warn(
        "adjust_cansim_values_by_variable is deprecated, use normalize_cansim_values",
        DeprecationWarning,
        stacklevel=2,
    )
    return normalize_cansim_values(data)
