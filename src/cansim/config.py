from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

# -----------------------------
# Endpoints
# -----------------------------

STATCAN_BASE = "https://www150.statcan.gc.ca"
WDS_BASE = f"{STATCAN_BASE}/t1/wds/rest"

# {path} is e.g. "14100287-eng"
FULL_TABLE_ZIP_URL = f"{STATCAN_BASE}/n1/tbl/csv/{{path}}.zip"
TABLE_WEBPAGE_URL = f"{STATCAN_BASE}/t1/tbl1/en/tv.action?pid={{pid}}"
CONCORDANCE_URL = "https://www.statcan.gc.ca/eng/developers-developpeurs/cansim_id-product_id-concordance.csv"

DEFAULT_HEADERS = {
    "User-Agent": "cansim-python/0.3 (+https://www150.statcan.gc.ca)",
    "Accept": "*/*",
}

# -----------------------------
# Parsing guardrails
# -----------------------------

NA_STRINGS = ["<NA>", "NA", "", "F"]

# Upper bound on closure passes; each pass adds one generation to every path.
MAX_HIERARCHY_DEPTH = 100

OVERVIEW_MEMBER_PREVIEW = 10

CACHE_ENV_VAR = "CANSIM_CACHE_PATH"


def cache_dir() -> Path:
    """Directory holding downloaded and annotated tables. Session-scoped unless overridden."""
    override = os.environ.get(CACHE_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path(tempfile.gettempdir()) / "cansim"


# -----------------------------
# Locale tables
# -----------------------------

@dataclass(frozen=True)
class MetadataLabels:
    # section markers, matched in label column 0
    dimension_id: str
    symbol_legend: str
    survey_code: str
    subject_code: str
    note_id: str
    correction_id: str

    # cube info fields
    cube_title: str
    start_period: str
    end_period: str
    frequency: str

    # dimension list / member table fields
    dimension_name: str
    member_name: str
    classification_code: str
    member_id: str
    parent_member_id: str

    # data table fields
    geo: str
    value: str
    ref_date: str
    scalar_id: str
    scalar_factor: str
    uom: str
    percent_pattern: str
    percent_label: str
    rate_label: str

    # annotation
    geography_token: str
    classification_prefix: str
    hierarchy_prefix: str
    hierarchy_field: str

    csv_sep: str


LABELS: Dict[str, MetadataLabels] = {
    "en": MetadataLabels(
        dimension_id="Dimension ID",
        symbol_legend="Symbol Legend",
        survey_code="Survey Code",
        subject_code="Subject Code",
        note_id="Note ID",
        correction_id="Correction ID",
        cube_title="Cube Title",
        start_period="Start Reference Period",
        end_period="End Reference Period",
        frequency="Frequency",
        dimension_name="Dimension name",
        member_name="Member Name",
        classification_code="Classification Code",
        member_id="Member ID",
        parent_member_id="Parent Member ID",
        geo="GEO",
        value="VALUE",
        ref_date="REF_DATE",
        scalar_id="SCALAR_ID",
        scalar_factor="SCALAR_FACTOR",
        uom="UOM",
        percent_pattern=r"^Percent",
        percent_label="Percent",
        rate_label="Rate",
        geography_token="Geography",
        classification_prefix="Classification Code for ",
        hierarchy_prefix="Hierarchy for ",
        hierarchy_field="Hierarchy",
        csv_sep=",",
    ),
    "fr": MetadataLabels(
        dimension_id="Identificateur de dimension",
        symbol_legend="Légende des symboles",
        survey_code="Code de l'enquête",
        subject_code="Code du sujet",
        note_id="Identificateur de la note",
        correction_id="Identificateur de correction",
        cube_title="Titre du cube",
        start_period="Période de référence de début",
        end_period="Période de référence de fin",
        frequency="Fréquence",
        dimension_name="Nom de la dimension",
        member_name="Nom du membre",
        classification_code="Code de classification",
        member_id="Identificateur du membre",
        parent_member_id="Identificateur du membre parent",
        geo="GÉO",
        value="VALEUR",
        ref_date="PÉRIODE DE RÉFÉRENCE",
        scalar_id="IDENTIFICATEUR SCALAIRE",
        scalar_factor="FACTEUR SCALAIRE",
        uom="UNITÉ DE MESURE",
        percent_pattern=r"^Pourcent",
        percent_label="Pourcentage",
        rate_label="Taux",
        geography_token="Géographie",
        classification_prefix="Code de classification pour ",
        hierarchy_prefix="Hiérarchie pour ",
        hierarchy_field="Hiérarchie",
        csv_sep=";",
    ),
}
