"""Analysis modules for snpset."""

from snpset.analysis.filters import (
    STAGE_ORDER,
    FilterCriteria,
    FilterStage,
    StageResult,
    filter_snps,
    run_filters,
)
from snpset.analysis.importer import available_bulks, check_schema, import_snps

__all__ = [
    # Import
    "available_bulks",
    "check_schema",
    "import_snps",
    # Filters
    "STAGE_ORDER",
    "FilterCriteria",
    "FilterStage",
    "StageResult",
    "filter_snps",
    "run_filters",
]
