"""Natural ordering of chromosome names.

Chromosome labels sort as Chr1 < Chr2 < Chr10 < ChrX rather than in
lexicographic order when they are reported back to the user.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from snpset.core.models import SiteRecord


def natural_sort_key(chrom: str) -> tuple:
    """Generate sort key for natural chromosome ordering.

    Args:
        chrom: Chromosome name (e.g., "Chr1", "chr10", "X").

    Returns:
        Tuple suitable for sorting comparison.

    Examples:
        >>> natural_sort_key("Chr2") < natural_sort_key("Chr10")
        True
        >>> natural_sort_key("Chr10") < natural_sort_key("ChrX")
        True
    """
    parts = re.split(r"(\d+)", chrom)
    return tuple(int(p) if p.isdigit() else p.lower() for p in parts)


def sort_chromosomes(chroms: Iterable[str]) -> list[str]:
    """Return chromosomes in natural sort order.

    Examples:
        >>> sort_chromosomes(['Chr10', 'Chr2', 'Chr1', 'ChrX'])
        ['Chr1', 'Chr2', 'Chr10', 'ChrX']
    """
    return sorted(chroms, key=natural_sort_key)


def count_by_chromosome(records: Iterable[SiteRecord]) -> dict[str, int]:
    """Count SNPs per chromosome, keyed in natural chromosome order.

    Args:
        records: SNP records to count.

    Returns:
        Mapping of chromosome name to number of SNPs.
    """
    counts: dict[str, int] = {}
    for record in records:
        counts[record.chrom] = counts.get(record.chrom, 0) + 1
    return {chrom: counts[chrom] for chrom in sort_chromosomes(counts)}
