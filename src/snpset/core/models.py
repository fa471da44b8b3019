"""Data models for snpset.

This module defines the raw variant table handed to the importer and
the per-site SNP record produced from it.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

# Site-identity and passthrough column names, as written by GATK VariantsToTable
CHROM_COLUMN = "CHROM"
POS_COLUMN = "POS"
REF_COLUMN = "REF"
ALT_COLUMN = "ALT"

# Per-bulk genotype fields; columns are named "<bulk>.<FIELD>"
DEPTH_FIELD = "DP"
ALLELE_DEPTH_FIELD = "AD"
GENOTYPE_QUALITY_FIELD = "GQ"


def bulk_column(bulk: str, field_name: str) -> str:
    """Build the column name holding ``field_name`` for ``bulk``.

    Examples:
        >>> bulk_column("mutant", "DP")
        'mutant.DP'
    """
    return f"{bulk}.{field_name}"


@dataclass
class VariantTable:
    """Raw tabular variant data, one row per site.

    Attributes:
        columns: Column names in header order.
        rows: One mapping of column name to value per site. Values are
            strings when read from text and may be numbers otherwise.
    """

    columns: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: Sequence[Mapping[str, Any]]) -> VariantTable:
        """Build a table from row mappings, collecting columns in first-seen order."""
        columns: dict[str, None] = {}
        for row in rows:
            for key in row:
                columns.setdefault(key, None)
        return cls(columns=list(columns), rows=[dict(row) for row in rows])

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class SiteRecord:
    """One variant site with depth statistics derived for both bulks.

    Depth fields hold ints, or NaN where the input value was missing.
    ``ad_alt_*`` is ``dp - ad_ref`` and lumps every non-reference allele
    together; it is negative when the reference depth exceeds total depth.

    Attributes:
        chrom: Chromosome name.
        pos: 1-based genomic position.
        ref: Reference allele, empty when the table has no REF column.
        alt: Alternate allele(s), empty when the table has no ALT column.
        dp_high: Total read depth in the high bulk.
        ad_ref_high: Reference allele depth in the high bulk.
        ad_alt_high: Non-reference depth in the high bulk.
        gq_high: Genotype quality in the high bulk.
        snp_index_high: Fraction of non-reference reads in the high bulk.
        dp_low: Total read depth in the low bulk.
        ad_ref_low: Reference allele depth in the low bulk.
        ad_alt_low: Non-reference depth in the low bulk.
        gq_low: Genotype quality in the low bulk.
        snp_index_low: Fraction of non-reference reads in the low bulk.
        ref_freq: Reference allele frequency over both bulks combined.
        delta_snp_index: ``snp_index_high - snp_index_low``.
        g_stat: G statistic for the site.
        extra: Read-only passthrough columns copied from the input table.
    """

    chrom: str
    pos: int
    ref: str
    alt: str
    dp_high: float
    ad_ref_high: float
    ad_alt_high: float
    gq_high: float
    snp_index_high: float
    dp_low: float
    ad_ref_low: float
    ad_alt_low: float
    gq_low: float
    snp_index_low: float
    ref_freq: float = math.nan
    delta_snp_index: float = math.nan
    g_stat: float = math.nan
    extra: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.extra, MappingProxyType):
            object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @property
    def total_dp(self) -> float:
        """Combined read depth of both bulks."""
        return self.dp_high + self.dp_low

    @property
    def has_negative_alt_depth(self) -> bool:
        """True when the AD reference depth exceeds DP in either bulk."""
        return self.ad_alt_high < 0 or self.ad_alt_low < 0

    def __repr__(self) -> str:
        """Return string representation of the record."""
        return (
            f"SiteRecord({self.chrom}:{self.pos}, "
            f"DP={self.dp_high}/{self.dp_low}, "
            f"SNPindex={self.snp_index_high:.3f}/{self.snp_index_low:.3f}, "
            f"delta={self.delta_snp_index:.3f})"
        )
