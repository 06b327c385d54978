from cansim.annotate import GEO_UID, AnnotationColumns, annotate_table, annotation_columns
from cansim.errors import (
    CansimError,
    CansimWarning,
    DownloadError,
    HierarchyDepthExceeded,
    LanguageError,
    MalformedMetadataError,
    TableNumberError,
    UnannotatedTableWarning,
    UnknownColumnError,
    UnmatchedDimensionWarning,
)
from cansim.hierarchy import build_hierarchies, build_hierarchy, hierarchy_depth
from cansim.levels import categories_for_level
from cansim.normalize import adjust_cansim_values_by_variable, normalize_cansim_values
from cansim.pipeline import EnrichedTable, fold_in_metadata, unannotated
from cansim.registry import DimensionDescriptor, DimensionMember, DimensionRegistry, build_registry
from cansim.retrieval import (
    get_cansim,
    get_cansim_column_categories,
    get_cansim_column_list,
    get_cansim_ndm,
    get_cansim_table_info,
    get_cansim_table_notes,
    get_cansim_table_overview,
    get_cansim_table_subject,
    get_cansim_table_survey,
)
from cansim.sections import MetadataSection, read_metadata_sheet, sheet_from_rows, split_sections
from cansim.tables import cansim_old_to_new, cleaned_ndm_table_number, naked_ndm_table_number, view_cansim_webpage
from cansim.wds import get_cansim_changed_tables, get_cansim_cube_metadata, get_cansim_table_url

__version__ = "0.3.0"
