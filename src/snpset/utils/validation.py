"""Input validation utilities for snpset.

This module provides functions for validating VCF inputs, bulk names,
filter thresholds and output paths before any work is done.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import TYPE_CHECKING

from snpset.utils.errors import SnpSetError, format_invalid_parameter
from snpset.utils.logging import get_logger

if TYPE_CHECKING:
    from snpset.analysis.filters import FilterCriteria

logger = get_logger(__name__)


class ValidationError(SnpSetError):
    """Raised when input validation fails."""


def validate_vcf(vcf_path: str | Path) -> dict:
    """Validate a VCF file before converting it to a variant table.

    Checks:
    - File exists and is readable
    - Has at least 2 samples
    - Declares the AD and DP FORMAT fields

    Args:
        vcf_path: Path to VCF file.

    Returns:
        dict with keys: samples, has_gq, contigs

    Raises:
        ValidationError: If validation fails.
    """
    from cyvcf2 import VCF

    vcf_path = Path(vcf_path)

    if not vcf_path.exists():
        raise ValidationError(f"VCF file not found: {vcf_path}")

    try:
        vcf = VCF(str(vcf_path))
    except Exception as e:
        raise ValidationError(f"Cannot read VCF file: {e}") from e

    samples = list(vcf.samples)
    if len(samples) < 2:
        raise ValidationError(
            f"VCF must contain at least 2 samples (one per bulk). "
            f"Found {len(samples)} sample(s)."
        )

    format_fields = set()
    contigs = []
    for header in vcf.header_iter():
        if header["HeaderType"] == "FORMAT":
            format_fields.add(header["ID"])
        elif header["HeaderType"] == "CONTIG":
            contigs.append(header["ID"])
    vcf.close()

    if "AD" not in format_fields:
        raise ValidationError(
            "VCF does not contain AD (allelic depth) FORMAT field.",
            suggestion=(
                "Call variants with a caller that writes per-allele depths "
                "(GATK HaplotypeCaller, bcftools mpileup -a AD)."
            ),
        )

    if "DP" not in format_fields:
        raise ValidationError("VCF does not contain DP (read depth) FORMAT field.")

    if "GQ" not in format_fields:
        logger.warning("VCF has no GQ FORMAT field; genotype quality will be NA")

    return {
        "samples": samples,
        "has_gq": "GQ" in format_fields,
        "contigs": contigs,
    }


def validate_bulk_names(high_bulk: str, low_bulk: str) -> tuple[str, str]:
    """Validate the two bulk names.

    Args:
        high_bulk: Name of the high bulk.
        low_bulk: Name of the low bulk.

    Returns:
        Tuple of (high_bulk, low_bulk) stripped of surrounding whitespace.

    Raises:
        ValidationError: If a name is empty or both names are the same.
    """
    high = high_bulk.strip()
    low = low_bulk.strip()

    if not high or not low:
        raise ValidationError("Both --high-bulk and --low-bulk must be non-empty")

    if high == low:
        raise ValidationError(
            f"Bulk '{high}' cannot be both the high and the low bulk",
            suggestion="Check your --high-bulk and --low-bulk arguments.",
        )

    return high, low


def _check_non_negative(name: str, value: float | None) -> None:
    if value is None:
        return
    if math.isnan(value) or value < 0:
        raise ValidationError(
            format_invalid_parameter(name, value, "must be a non-negative number")
        )


def validate_filter_criteria(criteria: FilterCriteria) -> None:
    """Validate filter thresholds.

    Checks:
    - 0 <= ref_allele_freq < 0.5
    - depth_mads, depth and GQ thresholds are >= 0
    - min_total_depth <= max_total_depth when both are set

    Args:
        criteria: Filter thresholds to check.

    Raises:
        ValidationError: If any threshold is invalid.
    """
    if criteria.ref_allele_freq is not None:
        freq = criteria.ref_allele_freq
        if not 0 <= freq < 0.5:
            raise ValidationError(
                format_invalid_parameter(
                    "ref_allele_freq",
                    freq,
                    "must be in [0, 0.5) so that the lower bound stays below 1 - bound",
                    suggestion="Typical values are 0.2 to 0.3.",
                )
            )

    _check_non_negative("depth_mads", criteria.depth_mads)
    _check_non_negative("min_total_depth", criteria.min_total_depth)
    _check_non_negative("max_total_depth", criteria.max_total_depth)
    _check_non_negative("min_sample_depth", criteria.min_sample_depth)
    _check_non_negative("min_gq", criteria.min_gq)

    if (
        criteria.min_total_depth is not None
        and criteria.max_total_depth is not None
        and criteria.min_total_depth > criteria.max_total_depth
    ):
        raise ValidationError(
            f"min_total_depth ({criteria.min_total_depth}) must not exceed "
            f"max_total_depth ({criteria.max_total_depth}). "
            f"Check your depth filter settings."
        )


def validate_output_path(out_prefix: str | Path) -> Path:
    """Validate output path and create parent directories.

    Args:
        out_prefix: Output prefix path.

    Returns:
        Resolved Path object.

    Raises:
        ValidationError: If path is invalid or not writable.
    """
    out_path = Path(out_prefix).resolve()
    parent = out_path.parent

    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Created output directory: {parent}")
        except OSError as e:
            raise ValidationError(
                f"Cannot create output directory: {parent}\n"
                f"Error: {e}"
            ) from e

    if not parent.is_dir():
        raise ValidationError(f"Output path parent is not a directory: {parent}")

    test_file = parent / f".snpset_write_test_{out_path.name}"
    try:
        test_file.touch()
        test_file.unlink()
    except OSError as e:
        raise ValidationError(
            f"Output directory is not writable: {parent}\n"
            f"Check file permissions."
        ) from e

    return out_path
