"""Pytest configuration and fixtures for snpset tests."""

from __future__ import annotations

import gzip
from collections.abc import Callable
from pathlib import Path

import pytest

from snpset.core.models import SiteRecord
from snpset.core.stats import calculate_ref_frequency, calculate_snp_index

TABLE_HEADER = [
    "CHROM", "POS", "REF", "ALT",
    "mut.AD", "mut.DP", "mut.GQ",
    "wt.AD", "wt.DP", "wt.GQ",
]

# One line per site: mut (AD, DP, GQ) then wt (AD, DP, GQ)
TABLE_ROWS = [
    ["chr1", "1000", "A", "G", "20,30", "50", "99", "40,10", "50", "99"],
    ["chr1", "2000", "C", "T", "15,35", "50", "99", "35,15", "50", "99"],
    ["chr1", "3000", "G", "A", "25,25", "50", "60", "30,20", "50", "99"],
    ["chr2", "1500", "T", "C", "10,40", "50", "99", "45,5", "50", "99"],
    # no reads in the mutant bulk
    ["chr2", "2500", "A", "T", "0,0", "0", "0", "20,20", "40", "99"],
    # AD reference depth exceeds DP
    ["chr2", "3500", "G", "C", "60,2", "50", "99", "30,20", "50", "99"],
    # repetitive region with outlier depth
    ["chrM", "100", "A", "G", "500,500", "1000", "99", "480,520", "1000", "99"],
    # multiallelic site
    ["chr1", "4000", "A", "G,T", "10,5,5", "20", "99", "12,4,4", "20", "99"],
]


def _table_text(header: list[str], rows: list[list[str]]) -> str:
    lines = ["\t".join(header)] + ["\t".join(row) for row in rows]
    return "\n".join(lines) + "\n"


SAMPLE_TABLE_CONTENT = _table_text(TABLE_HEADER, TABLE_ROWS)

# Sample VCF content for testing
SAMPLE_VCF_CONTENT = """\
##fileformat=VCFv4.2
##FILTER=<ID=PASS,Description="All filters passed">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths">
##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Read depth">
##FORMAT=<ID=GQ,Number=1,Type=Integer,Description="Genotype quality">
##contig=<ID=chr1,length=10000000>
##contig=<ID=chr2,length=8000000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	HIGH_BULK	LOW_BULK
chr1	1000	.	A	G	50.0	PASS	.	GT:AD:DP:GQ	0/1:20,30:50:99	0/1:40,10:50:99
chr1	2000	.	C	T	45.0	PASS	.	GT:AD:DP:GQ	0/1:15,35:50:99	0/1:35,15:50:99
chr1	3000	.	G	A	55.0	PASS	.	GT:AD:DP:GQ	0/1:25,25:50:99	0/1:30,20:50:.
chr2	1500	.	T	C	60.0	PASS	.	GT:AD:DP:GQ	0/1:10,40:50:99	0/1:45,5:50:99
"""

VCF_MISSING_AD = """\
##fileformat=VCFv4.2
##FILTER=<ID=PASS,Description="All filters passed">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Read depth">
##contig=<ID=chr1,length=10000000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	SAMPLE1	SAMPLE2
chr1	1000	.	A	G	50.0	PASS	.	GT:DP	0/1:50	0/1:50
"""

VCF_SINGLE_SAMPLE = """\
##fileformat=VCFv4.2
##FILTER=<ID=PASS,Description="All filters passed">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths">
##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Read depth">
##contig=<ID=chr1,length=10000000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	ONLY_SAMPLE
chr1	1000	.	A	G	50.0	PASS	.	GT:AD:DP	0/1:20,30:50
"""


@pytest.fixture
def sample_table_path(tmp_path: Path) -> Path:
    """Create a temporary VariantsToTable file with sample data.

    Returns:
        Path to the temporary table.
    """
    path = tmp_path / "calls.table"
    path.write_text(SAMPLE_TABLE_CONTENT)
    return path


@pytest.fixture
def gzipped_table_path(tmp_path: Path) -> Path:
    """Create a gzip-compressed copy of the sample table."""
    path = tmp_path / "calls.table.gz"
    with gzip.open(path, "wt") as f:
        f.write(SAMPLE_TABLE_CONTENT)
    return path


@pytest.fixture
def sample_vcf_path(tmp_path: Path) -> Path:
    """Create a temporary VCF file with sample data.

    Returns:
        Path to the temporary VCF file.
    """
    vcf_path = tmp_path / "test.vcf"
    vcf_path.write_text(SAMPLE_VCF_CONTENT)
    return vcf_path


@pytest.fixture
def vcf_missing_ad_path(tmp_path: Path) -> Path:
    """Create a VCF file missing the AD field."""
    vcf_path = tmp_path / "missing_ad.vcf"
    vcf_path.write_text(VCF_MISSING_AD)
    return vcf_path


@pytest.fixture
def vcf_single_sample_path(tmp_path: Path) -> Path:
    """Create a VCF file with only one sample."""
    vcf_path = tmp_path / "single_sample.vcf"
    vcf_path.write_text(VCF_SINGLE_SAMPLE)
    return vcf_path


@pytest.fixture
def example_rows() -> list[dict[str, object]]:
    """The two-site example: a balanced 40x site and a shallow 5x site.

    Returns:
        Row mappings with HighBulk and LowBulk columns.
    """
    return [
        {
            "CHROM": "1", "POS": "100",
            "HighBulk.DP": "40", "HighBulk.AD": "30,10", "HighBulk.GQ": "99",
            "LowBulk.DP": "40", "LowBulk.AD": "10,30", "LowBulk.GQ": "99",
        },
        {
            "CHROM": "1", "POS": "200",
            "HighBulk.DP": "5", "HighBulk.AD": "5,0", "HighBulk.GQ": "99",
            "LowBulk.DP": "5", "LowBulk.AD": "0,5", "LowBulk.GQ": "99",
        },
    ]


@pytest.fixture
def make_record() -> Callable[..., SiteRecord]:
    """Factory for SiteRecord objects with derived fields filled in.

    Returns:
        Function taking chrom, pos, depths, reference depths and
        genotype qualities and returning a SiteRecord.
    """

    def _make(
        chrom: str = "chr1",
        pos: int = 1000,
        dp_high: float = 50,
        ad_ref_high: float = 25,
        dp_low: float = 50,
        ad_ref_low: float = 25,
        gq_high: float = 99,
        gq_low: float = 99,
        g_stat: float = 0.0,
    ) -> SiteRecord:
        si_high = calculate_snp_index(dp_high - ad_ref_high, dp_high)
        si_low = calculate_snp_index(dp_low - ad_ref_low, dp_low)
        return SiteRecord(
            chrom=chrom,
            pos=pos,
            ref="A",
            alt="G",
            dp_high=dp_high,
            ad_ref_high=ad_ref_high,
            ad_alt_high=dp_high - ad_ref_high,
            gq_high=gq_high,
            snp_index_high=si_high,
            dp_low=dp_low,
            ad_ref_low=ad_ref_low,
            ad_alt_low=dp_low - ad_ref_low,
            gq_low=gq_low,
            snp_index_low=si_low,
            ref_freq=calculate_ref_frequency(ad_ref_high, ad_ref_low, dp_high, dp_low),
            delta_snp_index=si_high - si_low,
            g_stat=g_stat,
        )

    return _make


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory.

    Returns:
        Path to the temporary output directory.
    """
    out_dir = tmp_path / "output"
    out_dir.mkdir()
    return out_dir
