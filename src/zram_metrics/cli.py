"""CLI for the zram metrics collector.

Provides a rich command-line interface using Typer for:
- Running the long-lived collector for one zram device
- Showing the aggregate statistics collected so far
- Generating a sample configuration file
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from zram_metrics.core.config import load_config
from zram_metrics.core.constants import DEFAULT_METRICS_DIR, HOURS_PER_DAY
from zram_metrics.core.exceptions import ZramMetricsError
from zram_metrics.core.schemas import ZramStats
from zram_metrics.daemon import CollectionLoop, open_stats
from zram_metrics.monitoring.sysfs import ZramDevice, zram_module_loaded
from zram_metrics.storage.stats_storage import StatsStorage
from zram_metrics.utils.logging import setup_logging
from zram_metrics.utils.units import human_bytes

app = typer.Typer(
    name="zramd-metrics",
    help="zram usage statistics collector",
    add_completion=False,
)

console = Console()


@app.command()
def collect(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to collector configuration file (YAML/JSON)"
    ),
    device: int | None = typer.Option(None, "--device", "-d", help="zram device ID to monitor"),
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Collection interval in seconds"
    ),
    metrics_dir: Path | None = typer.Option(
        None, "--metrics-dir", "-m", help="Directory for the stats file (overrides config)"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Logging level"),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file in addition to console"
    ),
    json_logs: bool = typer.Option(
        False, "--json-logs", help="Output logs in JSON format (for programmatic parsing)"
    ),
    once: bool = typer.Option(False, "--once", help="Collect a single sample and exit"),
    no_root_check: bool = typer.Option(
        False, "--no-root-check", help="Skip the root privileges check"
    ),
) -> None:
    """Collect zram statistics until interrupted (SIGINT/SIGTERM)."""
    overrides = {
        "device_id": device,
        "interval_seconds": interval,
        "metrics_dir": metrics_dir,
        "log_level": log_level,
        "require_root": False if no_root_check else None,
    }
    try:
        collector_config = load_config(config, overrides)
    except Exception as e:
        console.print(f"[bold red]Error loading config: {escape(str(e))}[/]")
        raise typer.Exit(1) from e

    setup_logging(
        level=collector_config.log_level,
        log_file=log_file,
        json_format=json_logs,
        rich_console=not json_logs,
    )

    if collector_config.require_root and os.geteuid() != 0:
        console.print("[bold red]Error: root privileges are required[/]")
        raise typer.Exit(1)

    if not zram_module_loaded():
        console.print("[bold red]Error: zram module is not loaded[/]")
        raise typer.Exit(1)

    source = ZramDevice(collector_config.device_id, collector_config.sysfs_root)
    if not source.exists():
        console.print(f"[bold red]Error: {source.name} device does not exist[/]")
        raise typer.Exit(1)

    storage = StatsStorage(collector_config.metrics_dir)
    try:
        stats = open_stats(source, storage)
    except ZramMetricsError as e:
        console.print(f"[bold red]Error initializing stats: {escape(str(e))}[/]")
        raise typer.Exit(1) from e

    loop = CollectionLoop(source, storage, stats, collector_config.interval_seconds)
    if once:
        ok = loop.tick()
        raise typer.Exit(0 if ok else 1)

    with loop.handle_signals():
        loop.run()


@app.command()
def show(
    metrics_dir: Path = typer.Option(
        DEFAULT_METRICS_DIR, "--metrics-dir", "-m", help="Directory of the stats file"
    ),
    output_format: str = typer.Option("table", "--format", "-f", help="Output format: table, json"),
) -> None:
    """Show the aggregate statistics collected so far."""
    storage = StatsStorage(metrics_dir)

    try:
        stats = storage.load()
    except ZramMetricsError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        raise typer.Exit(1) from e

    if output_format == "json":
        typer.echo(stats.model_dump_json(indent=2))
    elif output_format == "table":
        _show_stats(stats)
    else:
        console.print(f"[bold red]Unknown format: {output_format}[/]")
        raise typer.Exit(1)


@app.command()
def init_config(
    output: Path = typer.Option(
        Path("zramd-metrics.yaml"), "--output", "-o", help="Output configuration file"
    ),
) -> None:
    """Generate a sample configuration file."""
    sample_config = """\
# zram metrics collector configuration

# zram device to monitor (/sys/block/zram<N>)
device_id: 0

# Seconds between samples
interval_seconds: 60

# Where zram_stats.json and its .bak backup are kept
metrics_dir: "/var/log/zramd/metrics"

# Block device sysfs root
sysfs_root: "/sys/block"

# Refuse to start unless running as root
require_root: true

log_level: INFO
"""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(sample_config)
    console.print(f"[bold green]Sample configuration written to {output}[/]")


def _fmt_ratio(value: float | None) -> str:
    return f"{value:.3f}" if value is not None else "N/A"


def _pct(count: int, total: int) -> str:
    return f"{100 * count / total:.1f}%" if total else "N/A"


def _show_stats(stats: ZramStats) -> None:
    """Display aggregate statistics as rich tables."""
    info = stats.system_info
    comp = stats.compression_stats
    mem = stats.memory_stats

    main_table = Table(show_header=False, box=None, padding=(0, 2))
    main_table.add_column("Metric", style="dim")
    main_table.add_column("Value", style="bold")

    main_table.add_row("Algorithm", f"[cyan]{stats.config.algorithm or 'N/A'}[/]")
    main_table.add_row("Device Size", human_bytes(stats.config.initial_size))
    main_table.add_row("Total Memory", human_bytes(info.total_memory))
    main_table.add_row("Kernel", escape(info.kernel_version))
    main_table.add_row("Collecting Since", info.start_time.isoformat(timespec="seconds"))
    main_table.add_row("Samples", f"{comp.sample_count:,}")

    main_table.add_row("", "")
    main_table.add_row("[yellow]Compression Ratio[/]", "")
    main_table.add_row("  Best", f"[green]{_fmt_ratio(comp.best_ratio)}[/]")
    main_table.add_row("  Average", _fmt_ratio(comp.average_ratio))
    main_table.add_row("  Worst", _fmt_ratio(comp.worst_ratio))
    for bucket, count in comp.bucket_counts().items():
        main_table.add_row(f"  {bucket.value.title()}", f"{count:,} ({_pct(count, comp.sample_count)})")

    main_table.add_row("", "")
    main_table.add_row("[magenta]Memory Used[/]", "")
    main_table.add_row("  Peak", human_bytes(mem.peak_usage))
    main_table.add_row("  Average", human_bytes(mem.average_usage))
    main_table.add_row("  Minimum", human_bytes(mem.min_usage) if mem.sample_count else "N/A")
    for bucket, count in mem.bucket_counts().items():
        main_table.add_row(f"  {bucket.value.title()}", f"{count:,} ({_pct(count, mem.sample_count)})")

    impact = stats.system_impact
    if impact.oom_events or impact.max_swap_used or impact.swap_pressure_time:
        main_table.add_row("", "")
        main_table.add_row("[red]System Impact[/]", "")
        main_table.add_row("  OOM Events", f"{impact.oom_events:,}")
        main_table.add_row("  Max Swap Used", human_bytes(impact.max_swap_used))
        main_table.add_row("  Pressure Minutes", f"{impact.swap_pressure_time:,}")

    uptime = stats.uptime(datetime.now(info.start_time.tzinfo))
    console.print(
        Panel(
            main_table,
            title=f"[bold]zram stats ({uptime.days}d {uptime.seconds // 3600}h)[/]",
            border_style="blue",
        )
    )

    time_analysis = stats.time_analysis
    busiest = time_analysis.busiest_hour()
    hourly_table = Table(title="Hourly Profile")
    hourly_table.add_column("Hour", style="cyan")
    hourly_table.add_column("Samples", justify="right")
    hourly_table.add_column("Avg Used", justify="right")
    for hour in range(HOURS_PER_DAY):
        samples = time_analysis.hourly_samples[hour]
        if samples == 0:
            continue
        avg = human_bytes(time_analysis.hourly_average(hour))
        style = "bold yellow" if hour == busiest else None
        hourly_table.add_row(f"{hour:02d}:00", f"{samples:,}", avg, style=style)

    if hourly_table.row_count:
        console.print(hourly_table)


if __name__ == "__main__":
    app()
