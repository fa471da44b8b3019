"""Import of raw variant tables into SNP sets.

This module turns a GATK VariantsToTable style table into an ordered
list of ``SiteRecord`` objects. Per-bulk columns are resolved by name
(``<bulk>.DP``, ``<bulk>.AD``, ``<bulk>.GQ``), allele depths and SNP
indices are derived for each bulk, and the G statistic is attached by
an injectable statistic function.
"""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Callable, Collection, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from snpset.core.models import (
    ALLELE_DEPTH_FIELD,
    ALT_COLUMN,
    CHROM_COLUMN,
    DEPTH_FIELD,
    GENOTYPE_QUALITY_FIELD,
    POS_COLUMN,
    REF_COLUMN,
    SiteRecord,
    VariantTable,
    bulk_column,
)
from snpset.core.stats import calculate_ref_frequency, calculate_snp_index, g_statistic
from snpset.utils.errors import (
    ParseError,
    RowCountError,
    SchemaError,
    format_missing_columns,
    format_parse_error,
)
from snpset.utils.logging import get_logger

if TYPE_CHECKING:
    import logging

GStatFunction = Callable[[Sequence[SiteRecord]], Sequence[float]]

# Tokens VariantsToTable and bcftools write for absent genotype fields
MISSING_VALUES = frozenset({"NA", ".", ""})

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class BulkColumns:
    """Resolved column names for one bulk."""

    name: str
    dp: str
    ad: str
    gq: str

    @classmethod
    def for_bulk(cls, name: str) -> BulkColumns:
        return cls(
            name=name,
            dp=bulk_column(name, DEPTH_FIELD),
            ad=bulk_column(name, ALLELE_DEPTH_FIELD),
            gq=bulk_column(name, GENOTYPE_QUALITY_FIELD),
        )

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.dp, self.ad, self.gq)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float):
        return math.isnan(value)
    return isinstance(value, str) and value.strip() in MISSING_VALUES


def _parse_count(value: Any, column: str, row: int) -> float:
    """Parse a non-negative integer read count; missing values become NaN."""
    if _is_missing(value):
        return math.nan
    try:
        count = int(value.strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as e:
        raise ParseError(
            format_parse_error(column, row, value, "a non-negative integer")
        ) from e
    if count < 0 or (not isinstance(value, str) and count != value):
        raise ParseError(format_parse_error(column, row, value, "a non-negative integer"))
    return count


def parse_ref_depth(value: Any, column: str = "AD", row: int = 0) -> float:
    """Parse the reference allele depth from an allele-depth field.

    The field is a comma-separated list of per-allele depths with the
    reference allele first (e.g. ``"30,10"`` or ``"12,3,1"``). Only the
    first token is used.

    Args:
        value: Allele-depth field value.
        column: Column name, for error messages.
        row: 1-based row number, for error messages.

    Returns:
        Reference allele depth, or NaN when the field is missing.

    Raises:
        ParseError: If the first token is not a non-negative integer.

    Examples:
        >>> parse_ref_depth("30,10")
        30
    """
    if _is_missing(value):
        return math.nan
    if not isinstance(value, str):
        return _parse_count(value, column, row)
    first = value.split(",", 1)[0]
    try:
        return _parse_count(first, column, row)
    except ParseError as e:
        raise ParseError(
            format_parse_error(column, row, value, "comma-separated integer depths")
        ) from e


def _parse_quality(value: Any, column: str, row: int) -> float:
    if _is_missing(value):
        return math.nan
    try:
        quality = float(value)
    except (TypeError, ValueError) as e:
        raise ParseError(
            format_parse_error(column, row, value, "a non-negative number")
        ) from e
    if quality < 0:
        raise ParseError(format_parse_error(column, row, value, "a non-negative number"))
    return quality


def _parse_position(value: Any, row: int) -> int:
    try:
        pos = int(value.strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as e:
        raise ParseError(format_parse_error(POS_COLUMN, row, value, "an integer")) from e
    if not isinstance(value, str) and pos != value:
        raise ParseError(format_parse_error(POS_COLUMN, row, value, "an integer"))
    return pos


def available_bulks(columns: Collection[str]) -> list[str]:
    """List bulk names that have DP, AD and GQ columns, in header order."""
    bulks = []
    for column in columns:
        if not column.endswith(f".{DEPTH_FIELD}"):
            continue
        name = column[: -len(DEPTH_FIELD) - 1]
        cols = BulkColumns.for_bulk(name)
        if cols.ad in columns and cols.gq in columns and name not in bulks:
            bulks.append(name)
    return bulks


def check_schema(
    columns: Collection[str],
    high_bulk: str,
    low_bulk: str,
    passthrough: Sequence[str] = (),
) -> tuple[BulkColumns, BulkColumns]:
    """Resolve the per-bulk columns and check every required column exists.

    Args:
        columns: Column names present in the table.
        high_bulk: Name of the high bulk.
        low_bulk: Name of the low bulk.
        passthrough: Extra descriptive columns the caller wants copied.

    Returns:
        Tuple of (high bulk columns, low bulk columns).

    Raises:
        SchemaError: If a site-identity, bulk or passthrough column is absent.
    """
    present = set(columns)

    missing_site = [c for c in (CHROM_COLUMN, POS_COLUMN) if c not in present]
    if missing_site:
        raise SchemaError(
            f"Table is missing site column(s): {', '.join(missing_site)}",
            suggestion="Export the table with -F CHROM -F POS.",
        )

    resolved = []
    for name in (high_bulk, low_bulk):
        bulk = BulkColumns.for_bulk(name)
        missing = [c for c in bulk.as_tuple() if c not in present]
        if missing:
            raise SchemaError(format_missing_columns(name, missing, available_bulks(columns)))
        resolved.append(bulk)

    missing_extra = [c for c in passthrough if c not in present]
    if missing_extra:
        raise SchemaError(f"Passthrough column(s) not found: {', '.join(missing_extra)}")

    return resolved[0], resolved[1]


def _bulk_values(
    row: Mapping[str, Any], bulk: BulkColumns, row_num: int
) -> tuple[float, float, float, float, float]:
    """Parse one bulk's fields and derive its alt depth and SNP index."""
    dp = _parse_count(row[bulk.dp], bulk.dp, row_num)
    ad_ref = parse_ref_depth(row[bulk.ad], bulk.ad, row_num)
    ad_alt = dp - ad_ref
    gq = _parse_quality(row[bulk.gq], bulk.gq, row_num)
    return dp, ad_ref, ad_alt, gq, calculate_snp_index(ad_alt, dp)


def import_snps(
    table: VariantTable | Sequence[Mapping[str, Any]],
    high_bulk: str,
    low_bulk: str,
    chrom_list: Collection[str] | None = None,
    g_stat: GStatFunction = g_statistic,
    passthrough: Sequence[str] = (),
    log: logging.Logger | None = None,
) -> list[SiteRecord]:
    """Import a raw variant table as an ordered list of SNP records.

    For each bulk the total depth (DP), the reference depth (first
    token of AD) and the genotype quality (GQ) are read; the
    non-reference depth is ``DP - AD_ref`` and the SNP index is
    ``AD_alt / DP`` (NaN when DP is 0). After the optional chromosome
    allow-list is applied, the combined reference allele frequency and
    the delta SNP index (high minus low) are calculated, and the
    statistic function is called once over the whole set to attach a
    G statistic to every record.

    Args:
        table: Raw table, or a sequence of row mappings.
        high_bulk: Name of the high bulk (e.g., mutant pool).
        low_bulk: Name of the low bulk (e.g., wild-type pool).
        chrom_list: Chromosomes to keep. All are kept when None.
        g_stat: Function returning one G statistic per record.
        passthrough: Extra columns copied into ``SiteRecord.extra``.
        log: Logger for progress messages. Defaults to the module logger.

    Returns:
        List of SiteRecord objects in input order.

    Raises:
        SchemaError: If a required column is absent for either bulk.
        ParseError: If a depth, allele depth or quality field is malformed.
        RowCountError: If the statistic function returns the wrong number
            of values.

    Example:
        >>> snps = import_snps(read_variant_table("calls.table"), "mut", "wt")
    """
    log = log or logger

    if not isinstance(table, VariantTable):
        table = VariantTable.from_rows(table)

    high_cols, low_cols = check_schema(table.columns, high_bulk, low_bulk, passthrough)
    keep_chroms = set(chrom_list) if chrom_list is not None else None

    log.info("Importing SNPs from table")

    records: list[SiteRecord] = []
    for row_num, row in enumerate(table.rows, start=1):
        required = (
            CHROM_COLUMN,
            POS_COLUMN,
            *high_cols.as_tuple(),
            *low_cols.as_tuple(),
            *passthrough,
        )
        missing = [c for c in required if c not in row]
        if missing:
            raise SchemaError(f"Row {row_num} has no value for column(s): {', '.join(missing)}")

        chrom = str(row[CHROM_COLUMN])
        if keep_chroms is not None and chrom not in keep_chroms:
            continue

        dp_h, ref_h, alt_h, gq_h, si_h = _bulk_values(row, high_cols, row_num)
        dp_l, ref_l, alt_l, gq_l, si_l = _bulk_values(row, low_cols, row_num)

        records.append(
            SiteRecord(
                chrom=chrom,
                pos=_parse_position(row[POS_COLUMN], row_num),
                ref=str(row.get(REF_COLUMN, "")),
                alt=str(row.get(ALT_COLUMN, "")),
                dp_high=dp_h,
                ad_ref_high=ref_h,
                ad_alt_high=alt_h,
                gq_high=gq_h,
                snp_index_high=si_h,
                dp_low=dp_l,
                ad_ref_low=ref_l,
                ad_alt_low=alt_l,
                gq_low=gq_l,
                snp_index_low=si_l,
                ref_freq=calculate_ref_frequency(ref_h, ref_l, dp_h, dp_l),
                delta_snp_index=si_h - si_l,
                extra={c: str(row[c]) for c in passthrough},
            )
        )

    if keep_chroms is not None:
        log.info(
            f"Kept {len(records):,} of {len(table):,} SNPs on "
            f"{len(keep_chroms)} requested chromosome(s)"
        )

    n_negative = sum(1 for r in records if r.has_negative_alt_depth)
    if n_negative:
        log.warning(
            f"{n_negative:,} SNP(s) have a reference allele depth greater than "
            f"total depth; their alternate depths are negative"
        )

    log.info("Calculating G statistic")
    g_values = g_stat(records)
    if len(g_values) != len(records):
        raise RowCountError(
            f"G statistic function returned {len(g_values)} value(s) "
            f"for {len(records)} SNP(s)"
        )

    return [
        dataclasses.replace(record, g_stat=float(g))
        for record, g in zip(records, g_values)
    ]
