"""SNP filtering by allele frequency, read depth and genotype quality.

Filtering is an ordered pipeline of independent stages. Each enabled
stage sees only the SNPs that survived the stages before it, so stages
whose bounds are computed from the data (the median/MAD depth filter)
depend on their position in the pipeline. The order is fixed by
``STAGE_ORDER``:

    1. ref_allele_freq   x < REF_FRQ < 1 - x
    2. depth_mads        median - k*MAD <= total DP <= median + k*MAD
    3. min_total_depth   total DP >= x
    4. max_total_depth   total DP <= x
    5. min_sample_depth  DP >= x in both bulks
    6. min_gq            GQ >= x in both bulks

NaN values never satisfy a comparison, so SNPs with undefined
frequencies or missing depths are removed by any stage that reads them.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING

from snpset.core.stats import median_and_mad
from snpset.utils.logging import get_logger
from snpset.utils.validation import validate_filter_criteria

if TYPE_CHECKING:
    import logging

    from snpset.core.models import SiteRecord

    Predicate = Callable[[SiteRecord], bool]

logger = get_logger(__name__)

STAGE_ORDER = (
    "ref_allele_freq",
    "depth_mads",
    "min_total_depth",
    "max_total_depth",
    "min_sample_depth",
    "min_gq",
)

STAGE_LABELS = {
    "ref_allele_freq": "Reference allele frequency",
    "depth_mads": "Total depth (MADs around median)",
    "min_total_depth": "Minimum total depth",
    "max_total_depth": "Maximum total depth",
    "min_sample_depth": "Minimum per-bulk depth",
    "min_gq": "Genotype quality",
}


@dataclass(frozen=True)
class FilterCriteria:
    """Thresholds for the SNP filter pipeline.

    A value of None disables the stage. The MAD depth filter and the
    genotype quality filter are enabled by default.

    Attributes:
        ref_allele_freq: Keep SNPs with x < REF_FRQ < 1 - x. Must be in [0, 0.5).
        depth_mads: Keep SNPs whose total depth is within this many
            (unscaled) median absolute deviations of the median.
        min_total_depth: Minimum combined depth of both bulks.
        max_total_depth: Maximum combined depth of both bulks.
        min_sample_depth: Minimum depth required in each bulk.
        min_gq: Minimum genotype quality required in each bulk.
    """

    ref_allele_freq: float | None = None
    depth_mads: float | None = 2.5
    min_total_depth: int | None = None
    max_total_depth: int | None = None
    min_sample_depth: int | None = None
    min_gq: float | None = 99

    @classmethod
    def disabled(cls) -> FilterCriteria:
        """Criteria with every stage, including the defaults, turned off."""
        return cls(**{f.name: None for f in fields(cls)})

    def stages(self) -> list[FilterStage]:
        """Enabled stages in application order."""
        return [
            _STAGE_BUILDERS[name](getattr(self, name))
            for name in STAGE_ORDER
            if getattr(self, name) is not None
        ]

    def to_dict(self) -> dict[str, float | int | None]:
        """Thresholds keyed by stage name, in application order."""
        return {name: getattr(self, name) for name in STAGE_ORDER}


@dataclass(frozen=True)
class FilterStage:
    """One filter stage bound to its threshold.

    ``prepare`` receives the SNP set the stage is applied to and returns
    the row predicate together with the lower and upper bounds it uses
    (None for a one-sided bound).
    """

    name: str
    value: float
    prepare: Callable[
        [Sequence[SiteRecord]], tuple[Predicate, float | None, float | None]
    ]
    template: str

    def describe(self, lower: float | None, upper: float | None) -> str:
        return self.template.format(value=self.value, lower=lower, upper=upper)


@dataclass(frozen=True)
class StageResult:
    """Outcome of applying one stage."""

    name: str
    value: float
    lower: float | None
    upper: float | None
    n_before: int
    n_after: int
    message: str

    @property
    def n_removed(self) -> int:
        return self.n_before - self.n_after

    @property
    def label(self) -> str:
        return STAGE_LABELS[self.name]


def _ref_allele_freq_stage(bound: float) -> FilterStage:
    lower, upper = bound, 1 - bound

    def prepare(records: Sequence[SiteRecord]):
        return (lambda r: lower < r.ref_freq < upper), lower, upper

    return FilterStage(
        name="ref_allele_freq",
        value=bound,
        prepare=prepare,
        template="Filtering by reference allele frequency: {lower:g} < REF_FRQ < {upper:g}",
    )


def _depth_mads_stage(k: float) -> FilterStage:
    def prepare(records: Sequence[SiteRecord]):
        median, mad = median_and_mad([r.total_dp for r in records])
        lower = median - k * mad
        upper = median + k * mad
        return (lambda r: lower <= r.total_dp <= upper), lower, upper

    return FilterStage(
        name="depth_mads",
        value=k,
        prepare=prepare,
        template=(
            "Filtering by total read depth: {value:g} MADs around the median: "
            "{lower:g} <= Total DP <= {upper:g}"
        ),
    )


def _min_total_depth_stage(min_dp: int) -> FilterStage:
    def prepare(records: Sequence[SiteRecord]):
        return (lambda r: r.total_dp >= min_dp), min_dp, None

    return FilterStage(
        name="min_total_depth",
        value=min_dp,
        prepare=prepare,
        template="Filtering by total sample read depth: Total DP >= {value:g}",
    )


def _max_total_depth_stage(max_dp: int) -> FilterStage:
    def prepare(records: Sequence[SiteRecord]):
        return (lambda r: r.total_dp <= max_dp), None, max_dp

    return FilterStage(
        name="max_total_depth",
        value=max_dp,
        prepare=prepare,
        template="Filtering by total sample read depth: Total DP <= {value:g}",
    )


def _min_sample_depth_stage(min_dp: int) -> FilterStage:
    def prepare(records: Sequence[SiteRecord]):
        return (lambda r: r.dp_high >= min_dp and r.dp_low >= min_dp), min_dp, None

    return FilterStage(
        name="min_sample_depth",
        value=min_dp,
        prepare=prepare,
        template="Filtering by per sample read depth: DP >= {value:g}",
    )


def _min_gq_stage(min_gq: float) -> FilterStage:
    def prepare(records: Sequence[SiteRecord]):
        return (lambda r: r.gq_high >= min_gq and r.gq_low >= min_gq), min_gq, None

    return FilterStage(
        name="min_gq",
        value=min_gq,
        prepare=prepare,
        template="Filtering by Genotype Quality: GQ >= {value:g}",
    )


_STAGE_BUILDERS: dict[str, Callable[[float], FilterStage]] = {
    "ref_allele_freq": _ref_allele_freq_stage,
    "depth_mads": _depth_mads_stage,
    "min_total_depth": _min_total_depth_stage,
    "max_total_depth": _max_total_depth_stage,
    "min_sample_depth": _min_sample_depth_stage,
    "min_gq": _min_gq_stage,
}


def run_filters(
    records: Sequence[SiteRecord],
    criteria: FilterCriteria | None = None,
    log: logging.Logger | None = None,
) -> tuple[list[SiteRecord], list[StageResult]]:
    """Apply the enabled filter stages and report what each one did.

    Args:
        records: SNP set to filter. It is not modified.
        criteria: Filter thresholds. Defaults to ``FilterCriteria()``.
        log: Logger for per-stage messages. Defaults to the module logger.

    Returns:
        Tuple of (surviving SNPs in input order, one StageResult per
        executed stage).

    Raises:
        ValidationError: If a threshold is out of range.
    """
    log = log or logger
    criteria = criteria if criteria is not None else FilterCriteria()
    validate_filter_criteria(criteria)

    current = list(records)
    results: list[StageResult] = []

    for stage in criteria.stages():
        predicate, lower, upper = stage.prepare(current)
        message = stage.describe(lower, upper)
        log.info(message)

        kept = [r for r in current if predicate(r)]
        results.append(
            StageResult(
                name=stage.name,
                value=stage.value,
                lower=lower,
                upper=upper,
                n_before=len(current),
                n_after=len(kept),
                message=message,
            )
        )
        current = kept

    return current, results


def filter_snps(
    records: Sequence[SiteRecord],
    criteria: FilterCriteria | None = None,
    log: logging.Logger | None = None,
) -> list[SiteRecord]:
    """Filter a SNP set by the given criteria.

    Each enabled stage narrows the output of the previous one; SNPs are
    never re-included and their order is preserved. An empty result is
    valid.

    Args:
        records: SNP set to filter. It is not modified.
        criteria: Filter thresholds. Defaults to ``FilterCriteria()``,
            i.e. the 2.5 MAD depth filter and GQ >= 99.
        log: Logger for per-stage messages.

    Returns:
        SNPs passing every enabled stage.

    Example:
        >>> kept = filter_snps(snps, FilterCriteria(ref_allele_freq=0.2, min_total_depth=40))
    """
    kept, _ = run_filters(records, criteria, log)
    return kept
