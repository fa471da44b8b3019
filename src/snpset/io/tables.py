"""Readers for GATK VariantsToTable output.

The table is tab-separated with a header row, e.g. as written by::

    gatk VariantsToTable -V calls.vcf.gz -F CHROM -F POS -F REF -F ALT \\
        -GF AD -GF DP -GF GQ -O calls.table

giving columns ``CHROM POS REF ALT mut.AD mut.DP mut.GQ wt.AD ...``.
"""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import IO

from snpset.analysis.importer import available_bulks
from snpset.core.models import VariantTable
from snpset.utils.errors import RowCountError
from snpset.utils.logging import get_logger

logger = get_logger(__name__)


def _open_text(path: Path) -> IO[str]:
    if path.suffix == ".gz":
        return gzip.open(path, "rt")
    return open(path)


def read_table_header(path: str | Path) -> list[str]:
    """Read only the column names of a variant table.

    Args:
        path: Path to the table (optionally gzip-compressed).

    Returns:
        Column names in header order.

    Raises:
        FileNotFoundError: If file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Variant table not found: {path}")

    with _open_text(path) as f:
        return f.readline().rstrip("\r\n").split("\t")


def read_variant_table(path: str | Path) -> VariantTable:
    """Read a tab-separated variant table.

    Values are kept as strings; parsing into numbers happens on import.

    Args:
        path: Path to the table (optionally gzip-compressed).

    Returns:
        VariantTable with one row per non-empty data line.

    Raises:
        FileNotFoundError: If file doesn't exist.
        RowCountError: If a data line has a different number of fields
            than the header.
    """
    path = Path(path)
    logger.info(f"Reading variant table from {path}")

    if not path.exists():
        raise FileNotFoundError(f"Variant table not found: {path}")

    rows = []
    with _open_text(path) as f:
        columns = f.readline().rstrip("\r\n").split("\t")

        for line_num, line in enumerate(f, start=2):
            line = line.rstrip("\r\n")
            if not line:
                continue

            fields = line.split("\t")
            if len(fields) != len(columns):
                raise RowCountError(
                    f"Line {line_num} of {path.name} has {len(fields)} field(s), "
                    f"header has {len(columns)}"
                )
            rows.append(dict(zip(columns, fields)))

    logger.info(f"Read {len(rows):,} sites from {path}")
    return VariantTable(columns=columns, rows=rows)


def get_bulk_names(path: str | Path) -> list[str]:
    """List bulk names that have DP, AD and GQ columns in a variant table.

    Args:
        path: Path to the table.

    Returns:
        Bulk names in header order.
    """
    return available_bulks(read_table_header(path))
