"""Output writers for snpset.

This module writes SNP sets to tab-separated files. Undefined values
(NaN) are written as ``NA``.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import TYPE_CHECKING

from snpset.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from snpset.core.models import SiteRecord

logger = get_logger(__name__)

MISSING = "NA"

COUNT_COLUMNS = [
    "dp_high",
    "ad_ref_high",
    "ad_alt_high",
    "dp_low",
    "ad_ref_low",
    "ad_alt_low",
]
QUALITY_COLUMNS = ["gq_high", "gq_low"]
RATIO_COLUMNS = [
    "snp_index_high",
    "snp_index_low",
    "ref_freq",
    "delta_snp_index",
    "g_stat",
]
SNP_COLUMNS = [
    "chrom",
    "pos",
    "ref",
    "alt",
    "dp_high",
    "ad_ref_high",
    "ad_alt_high",
    "gq_high",
    "snp_index_high",
    "dp_low",
    "ad_ref_low",
    "ad_alt_low",
    "gq_low",
    "snp_index_low",
    "ref_freq",
    "delta_snp_index",
    "g_stat",
]


def _format_value(column: str, value: object) -> str:
    if isinstance(value, float) and math.isnan(value):
        return MISSING
    if column in COUNT_COLUMNS:
        return str(int(value))
    if column in QUALITY_COLUMNS:
        return f"{value:g}"
    if column in RATIO_COLUMNS:
        return repr(float(value))
    return str(value)


def write_snps_tsv(
    records: Sequence[SiteRecord],
    path: str | Path,
) -> int:
    """Write a SNP set to a TSV file.

    Columns:
        chrom, pos, ref, alt, dp_high, ad_ref_high, ad_alt_high, gq_high,
        snp_index_high, dp_low, ad_ref_low, ad_alt_low, gq_low,
        snp_index_low, ref_freq, delta_snp_index, g_stat
    followed by any passthrough columns of the first record.

    Args:
        records: SNP records to write.
        path: Output file path.

    Returns:
        Number of SNPs written.

    Example:
        >>> n = write_snps_tsv(snps, "results_snps.tsv")
    """
    path = Path(path)
    logger.info(f"Writing SNPs to {path}")

    extra_columns = list(records[0].extra) if records else []

    count = 0
    with open(path, "w") as f:
        f.write("\t".join(SNP_COLUMNS + extra_columns) + "\n")

        for record in records:
            fields = [_format_value(c, getattr(record, c)) for c in SNP_COLUMNS]
            fields.extend(record.extra.get(c, MISSING) for c in extra_columns)
            f.write("\t".join(fields) + "\n")
            count += 1

    logger.info(f"Wrote {count:,} SNPs to {path}")
    return count
