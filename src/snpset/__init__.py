"""
snpset: SNP import and filtering for Bulk Segregant Analysis.

This package turns per-site variant tables for two pooled samples
(high and low bulk) into SNP sets with SNP indices, delta SNP index
and G statistics, and filters them by allele frequency, read depth
and genotype quality.
"""

__version__ = "1.0.0"
__author__ = "snpset Authors"

from snpset.analysis.filters import FilterCriteria, filter_snps
from snpset.analysis.importer import import_snps
from snpset.core.models import SiteRecord, VariantTable

__all__ = [
    "FilterCriteria",
    "SiteRecord",
    "VariantTable",
    "filter_snps",
    "import_snps",
    "__version__",
]
