"""VCF input for snpset.

Builds the same variant table GATK VariantsToTable would write for
``-F CHROM -F POS -F REF -F ALT -GF AD -GF DP -GF GQ`` straight from a
multi-sample VCF, so the import step can start from either format.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import TYPE_CHECKING

from cyvcf2 import VCF

from snpset.core.models import (
    ALLELE_DEPTH_FIELD,
    ALT_COLUMN,
    CHROM_COLUMN,
    DEPTH_FIELD,
    GENOTYPE_QUALITY_FIELD,
    POS_COLUMN,
    REF_COLUMN,
    VariantTable,
    bulk_column,
)
from snpset.utils.errors import SchemaError
from snpset.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np

logger = get_logger(__name__)

MISSING = "NA"


def get_sample_names(vcf_path: str | Path) -> list[str]:
    """Get list of sample names from a VCF file.

    Args:
        vcf_path: Path to VCF file (can be gzipped).

    Returns:
        List of sample names in the VCF.
    """
    vcf = VCF(str(vcf_path))
    samples = list(vcf.samples)
    vcf.close()
    return samples


def _format_number(value: float) -> str:
    """Render one FORMAT value, mapping cyvcf2 missing sentinels to NA."""
    if math.isnan(value) or value < 0:
        return MISSING
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _scalar_field(values: np.ndarray | None, idx: int) -> str:
    if values is None:
        return MISSING
    return _format_number(float(values[idx][0]))


def _allele_depths(values: np.ndarray | None, idx: int) -> str:
    if values is None:
        return MISSING
    sample = values[idx]
    # a missing reference depth must not shift an alternate depth into its slot
    if len(sample) == 0 or sample[0] < 0:
        return MISSING
    depths = [int(v) for v in sample if v >= 0]
    return ",".join(str(d) for d in depths)


def vcf_to_table(
    vcf_path: str | Path,
    samples: Sequence[str] | None = None,
) -> VariantTable:
    """Convert a VCF into a variant table with per-sample DP, AD and GQ columns.

    Args:
        vcf_path: Path to VCF file (can be gzipped).
        samples: Samples to include. All samples when None.

    Returns:
        VariantTable with columns CHROM, POS, REF, ALT followed by
        ``<sample>.AD``, ``<sample>.DP`` and ``<sample>.GQ`` for each sample.
        Missing values are written as ``NA``.

    Raises:
        FileNotFoundError: If VCF file does not exist.
        SchemaError: If a requested sample is not in the VCF.

    Example:
        >>> table = vcf_to_table("calls.vcf.gz", samples=["mut", "wt"])
        >>> snps = import_snps(table, "mut", "wt")
    """
    vcf_path = Path(vcf_path)

    if not vcf_path.exists():
        raise FileNotFoundError(f"VCF file not found: {vcf_path}")

    logger.info(f"Opening VCF file: {vcf_path}")
    vcf = VCF(str(vcf_path))
    available = list(vcf.samples)

    if samples is None:
        selected = available
    else:
        selected = [s.strip() for s in samples]
        missing = [s for s in selected if s not in available]
        if missing:
            vcf.close()
            raise SchemaError(
                f"Sample(s) not found in VCF: {', '.join(missing)}. "
                f"Available samples: {', '.join(available)}",
                suggestion="Sample names are case-sensitive; use 'snpset bulks --vcf FILE'.",
            )
    indices = [(name, available.index(name)) for name in selected]

    columns = [CHROM_COLUMN, POS_COLUMN, REF_COLUMN, ALT_COLUMN]
    for name, _ in indices:
        columns.extend(
            bulk_column(name, f)
            for f in (ALLELE_DEPTH_FIELD, DEPTH_FIELD, GENOTYPE_QUALITY_FIELD)
        )

    rows = []
    for record in vcf:
        ad = record.format(ALLELE_DEPTH_FIELD)
        dp = record.format(DEPTH_FIELD)
        gq = record.format(GENOTYPE_QUALITY_FIELD)

        row = {
            CHROM_COLUMN: record.CHROM,
            POS_COLUMN: str(record.POS),
            REF_COLUMN: record.REF,
            ALT_COLUMN: ",".join(record.ALT) or ".",
        }
        for name, idx in indices:
            row[bulk_column(name, ALLELE_DEPTH_FIELD)] = _allele_depths(ad, idx)
            row[bulk_column(name, DEPTH_FIELD)] = _scalar_field(dp, idx)
            row[bulk_column(name, GENOTYPE_QUALITY_FIELD)] = _scalar_field(gq, idx)
        rows.append(row)

    vcf.close()
    logger.info(f"Read {len(rows):,} sites for {len(indices)} sample(s) from {vcf_path}")
    return VariantTable(columns=columns, rows=rows)
