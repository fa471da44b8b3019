"""Statistical calculations for snpset.

This module provides the per-site ratios derived during import, the
default G-statistic function and the robust depth summary used by the
median-absolute-deviation filter.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np
from scipy import stats as scipy_stats

if TYPE_CHECKING:
    from collections.abc import Sequence

    from snpset.core.models import SiteRecord


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning NaN instead of raising when the denominator is 0.

    NaN inputs propagate to the result.

    Examples:
        >>> safe_ratio(10, 40)
        0.25
        >>> safe_ratio(0, 0)
        nan
    """
    if denominator == 0 or math.isnan(denominator):
        return math.nan
    return numerator / denominator


def calculate_snp_index(alt_depth: float, depth: float) -> float:
    """Fraction of reads supporting the non-reference allele(s).

    Args:
        alt_depth: Non-reference read depth.
        depth: Total read depth.

    Returns:
        SNP index, or NaN when depth is 0 or missing.
    """
    return safe_ratio(alt_depth, depth)


def calculate_ref_frequency(
    ref_depth_high: float,
    ref_depth_low: float,
    depth_high: float,
    depth_low: float,
) -> float:
    """Reference allele frequency over both bulks combined.

    Returns:
        ``(ref_high + ref_low) / (dp_high + dp_low)``, NaN when the
        combined depth is 0.
    """
    return safe_ratio(ref_depth_high + ref_depth_low, depth_high + depth_low)


def g_statistic(records: Sequence[SiteRecord]) -> np.ndarray:
    """Calculate the per-site G statistic for a SNP set.

    For each site the reference and non-reference counts of both bulks
    form a 2x2 table. The G statistic is the likelihood ratio test of
    independence between allele and bulk:

        G = 2 * sum(obs * ln(obs / exp))

    where expected counts come from the row and column totals. Cells
    with zero observed count contribute 0. Sites with zero total depth
    or missing counts yield NaN, as do anomalous negative counts.

    Args:
        records: SNP records with reference and non-reference depths.

    Returns:
        Array of G statistics, one per record in the same order.
    """
    if not records:
        return np.empty(0, dtype=np.float64)

    obs = np.array(
        [
            (r.ad_ref_high, r.ad_alt_high, r.ad_ref_low, r.ad_alt_low)
            for r in records
        ],
        dtype=np.float64,
    )
    ref_high, alt_high, ref_low, alt_low = obs.T

    total = obs.sum(axis=1)
    ref_total = ref_high + ref_low
    alt_total = alt_high + alt_low
    high_total = ref_high + alt_high
    low_total = ref_low + alt_low

    with np.errstate(divide="ignore", invalid="ignore"):
        exp = np.column_stack(
            [
                ref_total * high_total,
                alt_total * high_total,
                ref_total * low_total,
                alt_total * low_total,
            ]
        ) / total[:, None]
        terms = np.where(obs == 0, 0.0, obs * np.log(obs / exp))

    g = 2 * terms.sum(axis=1)
    g[total == 0] = np.nan
    g[(obs < 0).any(axis=1)] = np.nan
    return g


def median_and_mad(values: Sequence[float]) -> tuple[float, float]:
    """Median and unscaled median absolute deviation, ignoring NaN.

    The MAD uses a scale factor of 1, i.e. it is the plain median of
    absolute deviations from the median.

    Args:
        values: Numeric values, possibly containing NaN.

    Returns:
        Tuple of (median, MAD). Both are NaN when no finite value remains.

    Examples:
        >>> median_and_mad([10, 20, 30, 40, 1000])
        (30.0, 10.0)
    """
    arr = np.asarray(values, dtype=np.float64)
    arr = arr[~np.isnan(arr)]
    if arr.size == 0:
        return math.nan, math.nan

    median = float(np.median(arr))
    mad = float(scipy_stats.median_abs_deviation(arr, scale=1.0))
    return median, mad
