"""TSV file readers for snpset.

Reads SNP sets written by ``write_snps_tsv`` back into ``SiteRecord``
objects so filters can be re-run on a saved import.
"""

from __future__ import annotations

import math
from pathlib import Path

from snpset.core.models import SiteRecord
from snpset.io.writers import COUNT_COLUMNS, MISSING, SNP_COLUMNS
from snpset.utils.errors import ParseError, RowCountError, SchemaError
from snpset.utils.logging import get_logger

logger = get_logger(__name__)


def _parse_field(column: str, value: str) -> object:
    if column in ("chrom", "ref", "alt"):
        return value
    if column == "pos":
        return int(value)
    if value == MISSING:
        return math.nan
    if column in COUNT_COLUMNS:
        return int(value)
    return float(value)


def read_snps_tsv(path: str | Path) -> list[SiteRecord]:
    """Read a SNP set from a TSV file.

    Columns beyond the standard SNP columns are read as passthrough
    columns into ``SiteRecord.extra``.

    Args:
        path: Path to SNP TSV file.

    Returns:
        List of SiteRecord objects in file order.

    Raises:
        FileNotFoundError: If file doesn't exist.
        SchemaError: If required columns are missing.
        ParseError: If a value cannot be parsed.
        RowCountError: If a line has a different number of fields than the header.
    """
    path = Path(path)
    logger.info(f"Reading SNPs from {path}")

    if not path.exists():
        raise FileNotFoundError(f"SNP file not found: {path}")

    records = []

    with open(path) as f:
        header = f.readline().rstrip("\n").split("\t")

        missing = [col for col in SNP_COLUMNS if col not in header]
        if missing:
            raise SchemaError(
                f"Missing required columns in {path.name}: {', '.join(missing)}",
                suggestion="Pass a file written by 'snpset import' ({PREFIX}_snps.tsv).",
            )

        extra_columns = [col for col in header if col not in SNP_COLUMNS]

        for line_num, line in enumerate(f, start=2):
            line = line.rstrip("\n")
            if not line:
                continue

            fields = line.split("\t")
            if len(fields) != len(header):
                raise RowCountError(
                    f"Line {line_num} of {path.name} has {len(fields)} field(s), "
                    f"header has {len(header)}"
                )
            row = dict(zip(header, fields))

            try:
                values = {col: _parse_field(col, row[col]) for col in SNP_COLUMNS}
            except ValueError as e:
                raise ParseError(f"Invalid value on line {line_num} of {path.name}: {e}") from e

            records.append(SiteRecord(**values, extra={c: row[c] for c in extra_columns}))

    logger.info(f"Read {len(records):,} SNPs from {path}")
    return records
