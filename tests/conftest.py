from __future__ import annotations

import csv
import io
import zipfile
from typing import List

import pandas as pd
import pytest

from cansim.sections import sheet_from_rows

TABLE = "14-10-0201-01"
NAKED = "14100201"

INDUSTRY = "North American Industry Classification System (NAICS)"


def metadata_rows() -> List[List[str]]:
    return [
        [
            "Cube Title", "Product Id", "CANSIM Id", "URL", "Cube Notes", "Archive Status",
            "Frequency", "Start Reference Period", "End Reference Period", "Total number of dimensions",
        ],
        [
            "Employment by industry, monthly", NAKED, "281-0024",
            "https://www150.statcan.gc.ca/t1/tbl1/en/tv.action?pid=1410020101", "1;2", "CURRENT",
            "Monthly", "2001-01-01", "2024-12-01", "3",
        ],
        [],
        ["Dimension ID", "Dimension name", "Dimension Notes", "Dimension Definitions", "", "", ""],
        ["1", "Geography", "", ""],
        ["2", INDUSTRY, "3", ""],
        ["3", "Type of employee", "", ""],
        [],
        [
            "Dimension ID", "Member Name", "Classification Code", "Member ID", "Parent Member ID",
            "Terminated", "Member Notes", "Member Definitions",
        ],
        ["1", "Canada", "11124", "1", "", "", "", ""],
        ["1", "Ontario", "35", "2", "1", "", "", ""],
        ["1", "Quebec", "24", "3", "1", "", "", ""],
        ["2", "Industrial aggregate", "", "1", "", "", "", ""],
        ["2", "Goods producing industries", "", "2", "1", "", "", ""],
        ["2", "Construction", "[23]", "3", "2", "", "", ""],
        ["2", "Service producing industries", "", "4", "1", "", "", ""],
        ["3", "All employees", "", "1", "", "", "", ""],
        [],
        ["Symbol Legend", "Description"],
        ["..", "not available for a specific reference period"],
        ["F", "too unreliable to be published"],
        [],
        ["Survey Code", "Survey Name"],
        ["2612", "Survey of Employment, Payrolls and Hours"],
        [],
        ["Subject Code", "Subject Name"],
        ["1410", "Employment and unemployment"],
        [],
        ["Note ID", "Note"],
        ["1", "Estimates are rounded."],
        ["2", "Data are not seasonally adjusted."],
        [],
        ["Correction ID", "Correction Date", "Correction Note"],
    ]


def data_rows() -> pd.DataFrame:
    pairs = [
        ("Canada", "Industrial aggregate", "16000.5"),
        ("Canada", "Goods producing industries", "3200"),
        ("Canada", "Construction", "1100"),
        ("Canada", "Service producing industries", "12800.5"),
        ("Ontario", "Industrial aggregate", "6300"),
        ("Quebec", "Construction", "F"),
    ]
    return pd.DataFrame(
        {
            "REF_DATE": ["2024-01"] * len(pairs),
            "GEO": [g for g, _, _ in pairs],
            "DGUID": ["2016A000011124"] * len(pairs),
            INDUSTRY: [i for _, i, _ in pairs],
            "UOM": ["Persons"] * len(pairs),
            "SCALAR_FACTOR": ["thousands"] * len(pairs),
            "SCALAR_ID": ["3"] * len(pairs),
            "VALUE": [v for _, _, v in pairs],
        }
    )


FR_INDUSTRY = "Système de classification des industries de l'Amérique du Nord (SCIAN)"


def french_metadata_rows() -> List[List[str]]:
    return [
        [
            "Titre du cube", "Identificateur du produit", "Identificateur CANSIM", "URL", "Notes du cube",
            "Statut d'archive", "Fréquence", "Période de référence de début", "Période de référence de fin",
            "Nombre total de dimensions",
        ],
        [
            "Emploi selon l'industrie, mensuel", NAKED, "281-0024",
            "https://www150.statcan.gc.ca/t1/tbl1/fr/tv.action?pid=1410020101", "1", "ACTUEL",
            "Mensuel", "2001-01-01", "2024-12-01", "2",
        ],
        [],
        ["Identificateur de dimension", "Nom de la dimension", "Notes sur la dimension", "Définitions de la dimension"],
        ["1", "Géographie", "", ""],
        ["2", FR_INDUSTRY, "", ""],
        [],
        [
            "Identificateur de dimension", "Nom du membre", "Code de classification", "Identificateur du membre",
            "Identificateur du membre parent", "Terminé", "Notes sur le membre", "Définitions du membre",
        ],
        ["1", "Canada", "11124", "1", "", "", "", ""],
        ["1", "Ontario", "35", "2", "1", "", "", ""],
        ["2", "Ensemble des industries", "", "1", "", "", "", ""],
        ["2", "Secteur des biens", "", "2", "1", "", "", ""],
        ["2", "Construction", "[23]", "3", "2", "", "", ""],
        [],
        ["Légende des symboles", "Description"],
        ["F", "trop peu fiable pour être publié"],
        [],
        ["Code de l'enquête", "Nom de l'enquête"],
        ["2612", "Enquête sur l'emploi, la rémunération et les heures de travail"],
        [],
        ["Code du sujet", "Nom du sujet"],
        ["1410", "Emploi et chômage"],
        [],
        ["Identificateur de la note", "Note"],
        ["1", "Les estimations sont arrondies."],
        [],
        ["Identificateur de correction", "Date de correction", "Note de correction"],
    ]


def french_data_rows() -> pd.DataFrame:
    pairs = [
        ("Canada", "Ensemble des industries", "16000,5"),
        ("Canada", "Construction", "1100"),
        ("Ontario", "Secteur des biens", "F"),
    ]
    return pd.DataFrame(
        {
            "PÉRIODE DE RÉFÉRENCE": ["2024-01"] * len(pairs),
            "GÉO": [g for g, _, _ in pairs],
            FR_INDUSTRY: [i for _, i, _ in pairs],
            "UNITÉ DE MESURE": ["Personnes"] * len(pairs),
            "VALEUR": [v for _, _, v in pairs],
        }
    )


@pytest.fixture
def meta_rows() -> List[List[str]]:
    return metadata_rows()


@pytest.fixture
def sheet(meta_rows) -> pd.DataFrame:
    return sheet_from_rows(meta_rows)


@pytest.fixture
def data_table() -> pd.DataFrame:
    df = data_rows()
    df["VALUE"] = pd.to_numeric(df["VALUE"], errors="coerce")
    return df


def bundle_bytes(meta: List[List[str]], data: pd.DataFrame, naked: str = NAKED, sep: str = ",") -> bytes:
    meta_buf = io.StringIO()
    csv.writer(meta_buf, delimiter=sep).writerows(meta)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(f"{naked}.csv", data.to_csv(index=False, sep=sep))
        zf.writestr(f"{naked}_MetaData.csv", meta_buf.getvalue())
    return buf.getvalue()


@pytest.fixture
def cache_path(tmp_path, monkeypatch):
    monkeypatch.setenv("CANSIM_CACHE_PATH", str(tmp_path / "cache"))
    return tmp_path / "cache"
