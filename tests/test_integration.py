"""Integration tests for complete import and filter workflows."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from snpset import FilterCriteria, filter_snps, import_snps
from snpset.analysis.filters import run_filters
from snpset.cli import cli
from snpset.io.readers import read_snps_tsv
from snpset.io.vcf import vcf_to_table

# Test VCF with a clear BSA signal around chr1:700000
INTEGRATION_VCF = """\
##fileformat=VCFv4.2
##FILTER=<ID=PASS,Description="All filters passed">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths">
##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Read depth">
##FORMAT=<ID=GQ,Number=1,Type=Integer,Description="Genotype quality">
##contig=<ID=chr1,length=10000000>
##contig=<ID=chr2,length=8000000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	MUTANT	WILDTYPE
chr1	100000	.	A	G	50.0	PASS	.	GT:AD:DP:GQ	0/1:25,25:50:99	0/1:25,25:50:99
chr1	200000	.	C	T	50.0	PASS	.	GT:AD:DP:GQ	0/1:22,28:50:99	0/1:28,22:50:99
chr1	300000	.	G	A	50.0	PASS	.	GT:AD:DP:GQ	0/1:20,30:50:99	0/1:30,20:50:99
chr1	400000	.	T	C	50.0	PASS	.	GT:AD:DP:GQ	0/1:15,35:50:99	0/1:35,15:50:99
chr1	500000	.	A	G	50.0	PASS	.	GT:AD:DP:GQ	0/1:10,40:50:99	0/1:40,10:50:99
chr1	600000	.	C	T	50.0	PASS	.	GT:AD:DP:GQ	0/1:5,45:50:99	0/1:45,5:50:99
chr1	700000	.	G	A	50.0	PASS	.	GT:AD:DP:GQ	0/1:3,47:50:99	0/1:47,3:50:99
chr1	800000	.	T	C	50.0	PASS	.	GT:AD:DP:GQ	0/1:5,45:50:99	0/1:45,5:50:99
chr1	900000	.	A	G	50.0	PASS	.	GT:AD:DP:GQ	0/1:10,40:50:99	0/1:40,10:50:99
chr1	1000000	.	C	T	50.0	PASS	.	GT:AD:DP:GQ	0/1:15,35:50:99	0/1:35,15:50:99
chr2	100000	.	G	A	50.0	PASS	.	GT:AD:DP:GQ	0/1:25,25:50:99	0/1:25,25:50:99
chr2	200000	.	T	C	50.0	PASS	.	GT:AD:DP:GQ	0/1:24,26:50:99	0/1:26,24:50:99
chr2	300000	.	A	G	50.0	PASS	.	GT:AD:DP:GQ	0/1:23,27:50:99	0/1:27,23:50:99
chr2	400000	.	C	A	50.0	PASS	.	GT:AD:DP:GQ	0/1:150,150:300:99	0/1:150,150:300:99
chr2	500000	.	G	T	50.0	PASS	.	GT:AD:DP:GQ	0/1:25,25:50:20	0/1:25,25:50:99
"""


@pytest.fixture
def integration_vcf_path(tmp_path: Path) -> Path:
    """Create a VCF file for integration testing."""
    vcf_path = tmp_path / "integration_test.vcf"
    vcf_path.write_text(INTEGRATION_VCF)
    return vcf_path


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner for testing."""
    return CliRunner()


class TestExampleWorkflow:
    """The two-site example through import and filtering."""

    def test_import_then_filter(self, example_rows) -> None:
        snps = import_snps(example_rows, "HighBulk", "LowBulk")

        row_a, row_b = snps
        assert (row_a.snp_index_high, row_a.snp_index_low) == pytest.approx((0.25, 0.75))
        assert (row_a.delta_snp_index, row_a.ref_freq) == pytest.approx((-0.5, 0.5))
        assert (row_b.snp_index_high, row_b.snp_index_low) == pytest.approx((0.0, 1.0))
        assert (row_b.delta_snp_index, row_b.ref_freq) == pytest.approx((-1.0, 0.5))

        criteria = FilterCriteria(depth_mads=None, min_gq=None, min_total_depth=20)
        assert filter_snps(snps, criteria) == [row_a]


class TestVcfWorkflow:
    """Test VCF to filtered SNP set through the library API."""

    @pytest.fixture
    def snps(self, integration_vcf_path: Path):
        table = vcf_to_table(integration_vcf_path, samples=["MUTANT", "WILDTYPE"])
        return import_snps(table, "MUTANT", "WILDTYPE")

    def test_import_all_sites(self, snps) -> None:
        assert len(snps) == 15
        assert {s.chrom for s in snps} == {"chr1", "chr2"}

    def test_signal_peak(self, snps) -> None:
        """The most extreme delta SNP index also has the largest G statistic."""
        peak = max(snps, key=lambda s: s.delta_snp_index)

        assert (peak.chrom, peak.pos) == ("chr1", 700000)
        assert peak.delta_snp_index == pytest.approx(0.88)
        assert peak.g_stat == max(s.g_stat for s in snps)

    def test_unlinked_sites_have_zero_g(self, snps) -> None:
        balanced = [s for s in snps if s.pos == 100000]
        assert all(s.g_stat == pytest.approx(0.0, abs=1e-12) for s in balanced)

    def test_default_filters(self, snps) -> None:
        """The deep chr2 site fails the MAD depth stage, the GQ 20 site the quality stage."""
        kept, stages = run_filters(snps)

        assert [s.name for s in stages] == ["depth_mads", "min_gq"]
        assert stages[0].n_removed == 1
        assert stages[1].n_removed == 1
        assert len(kept) == 13
        assert ("chr2", 400000) not in [(s.chrom, s.pos) for s in kept]
        assert ("chr2", 500000) not in [(s.chrom, s.pos) for s in kept]

    def test_chromosome_subset(self, integration_vcf_path: Path) -> None:
        table = vcf_to_table(integration_vcf_path)
        snps = import_snps(table, "MUTANT", "WILDTYPE", chrom_list=["chr2"])

        assert [s.pos for s in snps] == [100000, 200000, 300000, 400000, 500000]

    def test_injected_logger_sees_every_stage(self, snps) -> None:
        messages: list[str] = []

        class Collector(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                messages.append(record.getMessage())

        log = logging.getLogger("test.integration")
        log.setLevel(logging.INFO)
        log.propagate = False
        handler = Collector()
        log.addHandler(handler)
        try:
            filter_snps(snps, FilterCriteria(ref_allele_freq=0.1, min_sample_depth=10), log=log)
        finally:
            log.removeHandler(handler)

        assert len(messages) == 4
        assert messages[0].startswith("Filtering by reference allele frequency")


class TestFullPipelineWorkflow:
    """Test complete pipeline from VCF to output."""

    def test_cli_run_produces_output(
        self, runner: CliRunner, integration_vcf_path: Path, tmp_path: Path
    ) -> None:
        """Test that run command produces output files."""
        output_prefix = tmp_path / "results" / "analysis"

        result = runner.invoke(cli, [
            "run",
            "--vcf", str(integration_vcf_path),
            "--high-bulk", "MUTANT",
            "--low-bulk", "WILDTYPE",
            "--out", str(output_prefix),
        ])

        assert result.exit_code == 0, result.output
        assert len(read_snps_tsv(tmp_path / "results" / "analysis_snps.tsv")) == 15
        assert len(read_snps_tsv(tmp_path / "results" / "analysis_filtered.tsv")) == 13

        summary = (tmp_path / "results" / "analysis_summary.txt").read_text()
        assert "High bulk: MUTANT" in summary
        assert "SNPs passing filters: 13" in summary

    def test_import_then_filter_matches_run(
        self, runner: CliRunner, integration_vcf_path: Path, tmp_path: Path
    ) -> None:
        """Re-filtering a saved import gives the same SNPs as a one-step run."""
        common = ["--high-bulk", "MUTANT", "--low-bulk", "WILDTYPE"]
        filters = ["--min-sample-depth", "40", "--min-gq", "50"]

        runner.invoke(cli, ["run", "--vcf", str(integration_vcf_path), *common,
                            *filters, "--out", str(tmp_path / "one")])
        runner.invoke(cli, ["import", "--vcf", str(integration_vcf_path), *common,
                            "--out", str(tmp_path / "two")])
        result = runner.invoke(cli, ["filter", "--snps", str(tmp_path / "two_snps.tsv"),
                                     *filters, "--out", str(tmp_path / "two")])

        assert result.exit_code == 0, result.output
        one = read_snps_tsv(tmp_path / "one_filtered.tsv")
        two = read_snps_tsv(tmp_path / "two_filtered.tsv")
        assert [(s.chrom, s.pos) for s in one] == [(s.chrom, s.pos) for s in two]
        assert len(one) == 13


class TestErrorHandlingWorkflow:
    """Test error handling in workflows."""

    def test_invalid_vcf_path(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test graceful handling of invalid VCF path."""
        result = runner.invoke(cli, [
            "run",
            "--vcf", "/nonexistent/path/file.vcf",
            "--high-bulk", "MUTANT",
            "--low-bulk", "WILDTYPE",
            "--out", str(tmp_path / "output"),
        ])

        assert result.exit_code != 0

    def test_malformed_depth(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "bad.table"
        path.write_text(
            "CHROM\tPOS\tm.AD\tm.DP\tm.GQ\tw.AD\tw.DP\tw.GQ\n"
            "chr1\t10\t5,5\tten\t99\t5,5\t10\t99\n"
        )

        result = runner.invoke(cli, [
            "run", "--table", str(path), "--high-bulk", "m", "--low-bulk", "w",
            "--out", str(tmp_path / "output"),
        ])

        assert result.exit_code == 1
        assert not (tmp_path / "output_snps.tsv").exists()
