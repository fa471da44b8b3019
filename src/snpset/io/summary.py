"""Summary report generation for snpset.

This module provides the text report written alongside filtered SNP
tables, describing the input, the import and every filter stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from snpset import __version__
from snpset.utils.logging import get_logger

if TYPE_CHECKING:
    from snpset.analysis.filters import StageResult

logger = get_logger(__name__)


@dataclass
class AnalysisSummary:
    """Summary of an import and filter run.

    Attributes:
        input_path: Path to the input table, VCF or SNP file.
        high_bulk: Name of the high bulk (None when unknown).
        low_bulk: Name of the low bulk (None when unknown).
        imported_snps: SNPs in the set before filtering.
        passing_snps: SNPs passing every filter stage.
        negative_alt_snps: SNPs whose reference depth exceeds total depth.
        stages: Result of each executed filter stage, in order.
        chrom_counts: Passing SNPs per chromosome.
        parameters: Dictionary of analysis parameters.
    """

    input_path: str
    high_bulk: str | None
    low_bulk: str | None
    imported_snps: int
    passing_snps: int
    negative_alt_snps: int = 0
    stages: list[StageResult] = field(default_factory=list)
    chrom_counts: dict[str, int] = field(default_factory=dict)
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_text(self) -> str:
        """Format summary as human-readable text.

        Returns:
            Multi-line string with summary information.
        """
        lines = [
            "=" * 70,
            "snpset Summary",
            "=" * 70,
            f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            f"Version: {__version__}",
            "",
            "INPUT",
            "-" * 70,
            f"Input file: {self.input_path}",
            f"High bulk: {self.high_bulk or 'N/A'}",
            f"Low bulk: {self.low_bulk or 'N/A'}",
            f"SNPs imported: {self.imported_snps:,}",
        ]

        if self.negative_alt_snps:
            lines.append(
                f"SNPs with AD reference depth > DP: {self.negative_alt_snps:,}"
            )

        lines.extend([
            "",
            "FILTERING",
            "-" * 70,
        ])

        if not self.stages:
            lines.append("No filters applied")
        for i, stage in enumerate(self.stages, start=1):
            lines.append(f"{i}. {stage.message}")
            lines.append(
                f"   {stage.n_before:,} -> {stage.n_after:,} "
                f"({stage.n_removed:,} removed)"
            )

        retained = 100 * self.passing_snps / max(self.imported_snps, 1)
        lines.extend([
            "",
            f"SNPs passing filters: {self.passing_snps:,} ({retained:.1f}%)",
        ])

        if self.chrom_counts:
            lines.extend(["", "SNPS PER CHROMOSOME", "-" * 70])
            for chrom, count in self.chrom_counts.items():
                lines.append(f"  {chrom}: {count:,}")

        lines.extend([
            "",
            "PARAMETERS",
            "-" * 70,
        ])

        for key, value in self.parameters.items():
            if value is None:
                lines.append(f"  {key}: off")
            elif isinstance(value, float):
                lines.append(f"  {key}: {value:g}")
            else:
                lines.append(f"  {key}: {value}")

        lines.extend([
            "",
            "=" * 70,
        ])

        return "\n".join(lines)


def write_summary(summary: AnalysisSummary, path: str | Path) -> None:
    """Write summary report to text file.

    Args:
        summary: AnalysisSummary object to write.
        path: Output file path.
    """
    path = Path(path)
    logger.info(f"Writing summary to {path}")

    with open(path, "w") as f:
        f.write(summary.to_text())
        f.write("\n")
