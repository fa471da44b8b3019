"""I/O utilities for snpset."""

from snpset.io.readers import read_snps_tsv
from snpset.io.summary import AnalysisSummary, write_summary
from snpset.io.tables import get_bulk_names, read_table_header, read_variant_table
from snpset.io.vcf import get_sample_names, vcf_to_table
from snpset.io.writers import write_snps_tsv

__all__ = [
    # Tables
    "get_bulk_names",
    "read_table_header",
    "read_variant_table",
    # VCF
    "get_sample_names",
    "vcf_to_table",
    # SNP sets
    "read_snps_tsv",
    "write_snps_tsv",
    # Summary
    "AnalysisSummary",
    "write_summary",
]
