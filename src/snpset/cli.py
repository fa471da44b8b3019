"""Command-line interface for snpset.

This module defines the Click-based CLI for the snpset package,
providing commands to import variant tables into SNP sets and filter
them for bulk segregant analysis.
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from snpset import __version__
from snpset.analysis.filters import FilterCriteria, StageResult, run_filters
from snpset.analysis.importer import import_snps
from snpset.core.models import SiteRecord, VariantTable
from snpset.io.readers import read_snps_tsv
from snpset.io.summary import AnalysisSummary, write_summary
from snpset.io.tables import get_bulk_names, read_variant_table
from snpset.io.vcf import get_sample_names, vcf_to_table
from snpset.io.writers import write_snps_tsv
from snpset.utils.errors import SnpSetError, format_no_snps_warning
from snpset.utils.logging import (
    log_step,
    print_error,
    print_file_created,
    print_info,
    print_stats,
    print_success,
    print_warning,
    setup_logging,
)
from snpset.utils.sorting import count_by_chromosome
from snpset.utils.validation import (
    validate_bulk_names,
    validate_filter_criteria,
    validate_output_path,
    validate_vcf,
)

console = Console(stderr=True)

# Context settings for all commands
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="snpset")
@click.option(
    "--verbose", "-v", is_flag=True, default=False, help="Enable verbose output"
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """snpset: SNP import and filtering for Bulk Segregant Analysis.

    Derive SNP indices, delta SNP index and G statistics for two pooled
    samples (high and low bulk) and filter SNPs by allele frequency,
    read depth and genotype quality.

    \b
    Quick start:
        snpset run --table calls.table --high-bulk mut --low-bulk wt -o results

    \b
    Common workflows:
        snpset bulks --table calls.table              # List bulk names
        snpset import --vcf calls.vcf.gz ... -o res   # Import only
        snpset filter --snps res_snps.tsv -o strict   # Re-filter a saved import
    """
    import logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level)


_INPUT_OPTIONS = [
    click.option(
        "--table",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        metavar="FILE",
        help="GATK VariantsToTable output (tab-separated, optionally gzipped).",
    ),
    click.option(
        "--vcf",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        metavar="FILE",
        help="Multi-sample VCF with AD, DP and GQ FORMAT fields.",
    ),
]

_FILTER_OPTIONS = [
    click.option(
        "--ref-allele-freq",
        type=float,
        default=None,
        metavar="FLOAT",
        help="Keep SNPs with FLOAT < REF_FRQ < 1 - FLOAT. Off by default.",
    ),
    click.option(
        "--depth-mads",
        type=float,
        default=2.5,
        show_default=True,
        metavar="FLOAT",
        help="Keep SNPs whose total depth is within FLOAT MADs of the median.",
    ),
    click.option(
        "--no-depth-mads",
        is_flag=True,
        default=False,
        help="Disable the median/MAD total depth filter.",
    ),
    click.option(
        "--min-total-depth",
        type=int,
        default=None,
        metavar="INT",
        help="Minimum combined depth of both bulks.",
    ),
    click.option(
        "--max-total-depth",
        type=int,
        default=None,
        metavar="INT",
        help="Maximum combined depth of both bulks.",
    ),
    click.option(
        "--min-sample-depth",
        type=int,
        default=None,
        metavar="INT",
        help="Minimum depth in each bulk.",
    ),
    click.option(
        "--min-gq",
        type=float,
        default=99.0,
        show_default=True,
        metavar="FLOAT",
        help="Minimum genotype quality in each bulk.",
    ),
    click.option(
        "--no-min-gq",
        is_flag=True,
        default=False,
        help="Disable the genotype quality filter.",
    ),
]


def input_options(func):
    """Options selecting a variant table or VCF as input."""
    for option in reversed(_INPUT_OPTIONS):
        func = option(func)
    return func


def filter_options(func):
    """Options for the SNP filter pipeline, listed in stage order."""
    for option in reversed(_FILTER_OPTIONS):
        func = option(func)
    return func


def _build_criteria(
    ref_allele_freq: float | None,
    depth_mads: float,
    no_depth_mads: bool,
    min_total_depth: int | None,
    max_total_depth: int | None,
    min_sample_depth: int | None,
    min_gq: float,
    no_min_gq: bool,
) -> FilterCriteria:
    criteria = FilterCriteria(
        ref_allele_freq=ref_allele_freq,
        depth_mads=None if no_depth_mads else depth_mads,
        min_total_depth=min_total_depth,
        max_total_depth=max_total_depth,
        min_sample_depth=min_sample_depth,
        min_gq=None if no_min_gq else min_gq,
    )
    validate_filter_criteria(criteria)
    return criteria


def _parse_chrom_list(chrom: tuple[str, ...]) -> list[str] | None:
    if not chrom:
        return None
    return [c.strip() for value in chrom for c in value.split(",") if c.strip()]


def _load_table(
    table: Path | None, vcf: Path | None, high_bulk: str, low_bulk: str
) -> tuple[VariantTable, Path]:
    """Read the raw variant table from whichever input was given."""
    if (table is None) == (vcf is None):
        raise click.UsageError("Provide exactly one of --table or --vcf.")

    if vcf is not None:
        validate_vcf(vcf)
        return vcf_to_table(vcf, samples=[high_bulk, low_bulk]), vcf
    return read_variant_table(table), table


def _print_stage_table(stages: list[StageResult]) -> None:
    table = Table(title="Filter Stages", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Stage")
    table.add_column("Bounds")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")

    for i, stage in enumerate(stages, start=1):
        lower = "" if stage.lower is None else f"{stage.lower:g} <= "
        upper = "" if stage.upper is None else f" <= {stage.upper:g}"
        table.add_row(
            str(i),
            stage.label,
            f"{lower}x{upper}",
            f"{stage.n_before:,}",
            f"{stage.n_after:,}",
        )

    console.print(table)


def _print_chrom_table(records: list[SiteRecord]) -> None:
    counts = count_by_chromosome(records)
    if not counts:
        return

    console.print("\n[bold]SNPs per chromosome:[/bold]")
    chrom_table = Table(show_header=True, header_style="bold cyan")
    chrom_table.add_column("Chromosome")
    chrom_table.add_column("SNPs", justify="right")

    for chrom, count in counts.items():
        chrom_table.add_row(chrom, f"{count:,}")

    console.print(chrom_table)


def _import(
    table: Path | None,
    vcf: Path | None,
    high_bulk: str,
    low_bulk: str,
    chrom: tuple[str, ...],
    passthrough: tuple[str, ...],
) -> tuple[list[SiteRecord], Path]:
    high, low = validate_bulk_names(high_bulk, low_bulk)
    raw, input_path = _load_table(table, vcf, high, low)
    records = import_snps(
        raw,
        high_bulk=high,
        low_bulk=low,
        chrom_list=_parse_chrom_list(chrom),
        passthrough=passthrough,
    )

    n_negative = sum(1 for r in records if r.has_negative_alt_depth)
    print_stats(
        {
            "Sites in input": len(raw),
            "SNPs imported": len(records),
            "Chromosomes": len(count_by_chromosome(records)),
            "AD reference depth > DP": n_negative,
        },
        title="Import Summary",
    )
    return records, input_path


def _filter_and_report(
    records: list[SiteRecord],
    criteria: FilterCriteria,
    input_path: Path,
    out: Path,
    high_bulk: str | None,
    low_bulk: str | None,
    parameters: dict,
) -> list[SiteRecord]:
    kept, stages = run_filters(records, criteria)

    if stages:
        _print_stage_table(stages)
    else:
        print_info("All filters disabled; SNP set written unchanged")

    emptied = next((s for s in stages if s.n_after == 0 and s.n_before > 0), None)
    if emptied is not None:
        print_warning(format_no_snps_warning(emptied.label))

    _print_chrom_table(kept)

    out_filtered = Path(f"{out}_filtered.tsv")
    write_snps_tsv(kept, out_filtered)
    print_file_created(out_filtered)

    summary = AnalysisSummary(
        input_path=str(input_path),
        high_bulk=high_bulk,
        low_bulk=low_bulk,
        imported_snps=len(records),
        passing_snps=len(kept),
        negative_alt_snps=sum(1 for r in records if r.has_negative_alt_depth),
        stages=stages,
        chrom_counts=count_by_chromosome(kept),
        parameters={**parameters, **criteria.to_dict()},
    )
    out_summary = Path(f"{out}_summary.txt")
    write_summary(summary, out_summary)
    print_file_created(out_summary)

    return kept


def _handle_failure(ctx: click.Context, action: str, error: Exception) -> None:
    if isinstance(error, SnpSetError):
        error.display()
    elif isinstance(error, FileNotFoundError):
        print_error(str(error))
    else:
        print_error(f"{action} failed: {error}")
        if ctx.obj.get("verbose"):
            console.print_exception()
    raise SystemExit(1) from error


@cli.command()
@input_options
def bulks(table: Path | None, vcf: Path | None) -> None:
    """List bulk names in a variant table or samples in a VCF.

    For a table, only names with all of the <bulk>.DP, <bulk>.AD and
    <bulk>.GQ columns are listed.

    \b
    Example:
        snpset bulks --table calls.table
    """
    if (table is None) == (vcf is None):
        raise click.UsageError("Provide exactly one of --table or --vcf.")

    try:
        if vcf is not None:
            names = get_sample_names(vcf)
            source = vcf
        else:
            names = get_bulk_names(table)
            source = table
    except Exception as e:
        print_error(f"Failed to read input: {e}")
        raise SystemExit(1) from e

    if not names:
        print_error("No bulks found (expected <bulk>.DP, <bulk>.AD and <bulk>.GQ columns)")
        raise SystemExit(1)

    console.print(f"\n[bold]Bulks in {source.name}:[/bold]\n")

    name_table = Table(show_header=True, header_style="bold cyan")
    name_table.add_column("Index", justify="right", style="dim")
    name_table.add_column("Bulk Name")

    for i, name in enumerate(names):
        name_table.add_row(str(i), name)

    console.print(name_table)
    # plain listing on stdout so the names can be piped
    for name in names:
        click.echo(name)


@cli.command("import")
@input_options
@click.option(
    "--high-bulk",
    required=True,
    metavar="NAME",
    help="Name of the high/mutant bulk (column prefix in the table).",
)
@click.option(
    "--low-bulk",
    required=True,
    metavar="NAME",
    help="Name of the low/wild-type bulk (column prefix in the table).",
)
@click.option(
    "--chrom",
    multiple=True,
    metavar="NAMES",
    help="Chromosome(s) to keep. Repeat or comma-separate. All by default.",
)
@click.option(
    "--passthrough",
    multiple=True,
    metavar="COLUMN",
    help="Extra table column(s) to copy into the output.",
)
@click.option(
    "--out",
    "-o",
    required=True,
    type=click.Path(path_type=Path),
    metavar="PREFIX",
    help="Output prefix. Writes {PREFIX}_snps.tsv.",
)
@click.pass_context
def import_cmd(
    ctx: click.Context,
    table: Path | None,
    vcf: Path | None,
    high_bulk: str,
    low_bulk: str,
    chrom: tuple[str, ...],
    passthrough: tuple[str, ...],
    out: Path,
) -> None:
    """Import a variant table into a SNP set.

    Calculates per-bulk reference/alternate depths and SNP indices, the
    combined reference allele frequency, the delta SNP index and the
    G statistic for every site.

    \b
    Examples:
        snpset import --table calls.table --high-bulk mut --low-bulk wt -o res
        snpset import --vcf calls.vcf.gz --high-bulk mut --low-bulk wt \\
            --chrom Chr01,Chr02 -o res
    """
    try:
        validate_output_path(out)
        records, _ = _import(table, vcf, high_bulk, low_bulk, chrom, passthrough)

        out_snps = Path(f"{out}_snps.tsv")
        write_snps_tsv(records, out_snps)
        print_file_created(out_snps)
        print_success("Import complete!")

    except click.UsageError:
        raise
    except Exception as e:
        _handle_failure(ctx, "Import", e)


@cli.command("filter")
@click.option(
    "--snps",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    metavar="FILE",
    help="SNP table written by 'snpset import' ({PREFIX}_snps.tsv).",
)
@filter_options
@click.option(
    "--out",
    "-o",
    required=True,
    type=click.Path(path_type=Path),
    metavar="PREFIX",
    help="Output prefix. Writes {PREFIX}_filtered.tsv and {PREFIX}_summary.txt.",
)
@click.pass_context
def filter_cmd(
    ctx: click.Context,
    snps: Path,
    out: Path,
    **filter_kwargs,
) -> None:
    """Filter a saved SNP set.

    Stages run in a fixed order, each on the output of the previous one:
    reference allele frequency, MAD total depth, minimum and maximum
    total depth, per-bulk depth, genotype quality.

    \b
    Example:
        snpset filter --snps res_snps.tsv --ref-allele-freq 0.2 \\
            --min-sample-depth 40 --min-gq 99 -o res_strict
    """
    try:
        criteria = _build_criteria(**filter_kwargs)
        validate_output_path(out)
        records = read_snps_tsv(snps)
        kept = _filter_and_report(
            records,
            criteria,
            input_path=snps,
            out=out,
            high_bulk=None,
            low_bulk=None,
            parameters={},
        )
        print_success(f"Filtering complete: {len(kept):,} of {len(records):,} SNPs kept")

    except Exception as e:
        _handle_failure(ctx, "Filtering", e)


@cli.command()
@input_options
@click.option(
    "--high-bulk",
    required=True,
    metavar="NAME",
    help="Name of the high/mutant bulk (column prefix in the table).",
)
@click.option(
    "--low-bulk",
    required=True,
    metavar="NAME",
    help="Name of the low/wild-type bulk (column prefix in the table).",
)
@click.option(
    "--chrom",
    multiple=True,
    metavar="NAMES",
    help="Chromosome(s) to keep. Repeat or comma-separate. All by default.",
)
@click.option(
    "--passthrough",
    multiple=True,
    metavar="COLUMN",
    help="Extra table column(s) to copy into the output.",
)
@filter_options
@click.option(
    "--out",
    "-o",
    required=True,
    type=click.Path(path_type=Path),
    metavar="PREFIX",
    help="Output prefix. Files will be named {PREFIX}_snps.tsv, etc.",
)
@click.pass_context
def run(
    ctx: click.Context,
    table: Path | None,
    vcf: Path | None,
    high_bulk: str,
    low_bulk: str,
    chrom: tuple[str, ...],
    passthrough: tuple[str, ...],
    out: Path,
    **filter_kwargs,
) -> None:
    """Import a variant table and filter the SNPs in one step.

    \b
    Examples:
      Default filters (2.5 MADs around the median depth, GQ >= 99):
        snpset run --table calls.table --high-bulk mut --low-bulk wt -o res

      Stringent:
        snpset run --table calls.table --high-bulk mut --low-bulk wt -o res \\
            --ref-allele-freq 0.2 --min-total-depth 100 --max-total-depth 400 \\
            --min-sample-depth 40

    \b
    Output files:
      {PREFIX}_snps.tsv      All imported SNPs
      {PREFIX}_filtered.tsv  SNPs passing the filters
      {PREFIX}_summary.txt   Import and filter summary
    """
    try:
        criteria = _build_criteria(**filter_kwargs)
        validate_output_path(out)

        log_step(1, 2, "Importing SNPs")
        records, input_path = _import(table, vcf, high_bulk, low_bulk, chrom, passthrough)

        out_snps = Path(f"{out}_snps.tsv")
        write_snps_tsv(records, out_snps)
        print_file_created(out_snps)

        log_step(2, 2, "Filtering SNPs")
        kept = _filter_and_report(
            records,
            criteria,
            input_path=input_path,
            out=out,
            high_bulk=high_bulk.strip(),
            low_bulk=low_bulk.strip(),
            parameters={"chrom": ",".join(_parse_chrom_list(chrom) or []) or "all"},
        )
        print_success(f"Analysis complete: {len(kept):,} of {len(records):,} SNPs kept")

    except click.UsageError:
        raise
    except Exception as e:
        _handle_failure(ctx, "Analysis", e)


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
