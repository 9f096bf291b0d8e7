"""
Command-line interface for csfassess.

Provides commands for scoring a framework assessment, recording progress
snapshots, analyzing quality and trends, and exporting or importing
assessment data.

Uses Python's argparse module (no external CLI libraries).
"""

from __future__ import annotations

import argparse
import csv
import io
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

from csfassess import __version__
from csfassess.config.settings import (
    DEFAULT_CONFIG_DIR,
    ConfigurationError,
    Settings,
    get_config_path,
    load_config,
    save_config,
)

# Set up logging
logger = logging.getLogger(__name__)

# Global verbosity settings (set during main() based on args)
_quiet_mode = False
_verbose_level = 0


def set_output_mode(quiet: bool = False, verbose: int = 0) -> None:
    """
    Set the output mode for the CLI.

    Args:
        quiet: If True, suppress non-essential output.
        verbose: Verbosity level (0=normal, 1+=verbose).
    """
    global _quiet_mode, _verbose_level
    _quiet_mode = quiet
    _verbose_level = verbose


def output(message: str = "", force: bool = False) -> None:
    """
    Print a message to stdout, respecting quiet mode.

    Args:
        message: The message to print.
        force: If True, print even in quiet mode (for essential output like JSON/CSV).
    """
    if force or not _quiet_mode:
        print(message)


def output_verbose(message: str, level: int = 1) -> None:
    """Print a message only if verbosity is at least the given level."""
    if _verbose_level >= level and not _quiet_mode:
        print(message)


def output_error(message: str) -> None:
    """Print an error message (always shown, even in quiet mode)."""
    print(message, file=sys.stderr)


def format_as_csv(headers: list[str], rows: list[list[Any]]) -> str:
    """Format data as CSV string."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the csfassess CLI."""
    parser = argparse.ArgumentParser(
        prog="csfassess",
        description="Cybersecurity framework self-assessment scoring engine",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"csfassess {__version__}",
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Override config file location (default: ~/.csfassess/config.yaml)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (can be repeated)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        metavar="<command>",
    )

    # info command
    info_parser = subparsers.add_parser(
        "info",
        help="Show configuration and framework information",
        description="Display version, configuration paths, and the framework catalog summary.",
    )
    info_parser.add_argument("--json", action="store_true", help="Output as JSON")
    info_parser.set_defaults(func=cmd_info)

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Create a default configuration file",
        description="Create the config directory and write a default config.yaml.",
    )
    init_parser.add_argument(
        "--strategy",
        choices=["rubric", "quaternary"],
        help="Response strategy to configure",
    )
    init_parser.add_argument(
        "--backend",
        choices=["file", "sqlite", "memory"],
        help="Storage backend to configure",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )
    init_parser.set_defaults(func=cmd_init)

    # search command
    search_parser = subparsers.add_parser(
        "search",
        help="Search framework controls",
        description="Case-insensitive search over control ids, names, descriptions, "
        "function names, and category names.",
    )
    search_parser.add_argument("term", help="Search term")
    search_parser.add_argument("--json", action="store_true", help="Output as JSON")
    search_parser.set_defaults(func=cmd_search)

    # set command
    set_parser = subparsers.add_parser(
        "set",
        help="Score a control",
        description="Update one control. Rubric fields are merged into the existing record.",
    )
    set_parser.add_argument("control", help="Control id, e.g. GV.OC-01")
    for dimension in ("maturity", "implementation", "evidence", "testing"):
        set_parser.add_argument(
            f"--{dimension}",
            type=int,
            choices=[0, 1, 2, 3],
            help=f"{dimension.capitalize()} score (rubric)",
        )
    set_parser.add_argument("--notes", help="Assessor notes (rubric)")
    set_parser.add_argument("--assessor", help="Assessor identifier (rubric)")
    set_parser.add_argument(
        "--link",
        action="append",
        dest="links",
        metavar="URL",
        help="Evidence link, can be repeated (rubric)",
    )
    set_parser.add_argument(
        "--response",
        choices=["Yes", "Partial", "No", "N/A"],
        help="Response (quaternary)",
    )
    set_parser.set_defaults(func=cmd_set)

    # score command
    score_parser = subparsers.add_parser(
        "score",
        help="Show completion and scores",
        description="Show completion and average score per function and overall.",
    )
    score_parser.add_argument(
        "--format",
        choices=["table", "json", "csv"],
        default="table",
        help="Output format (default: table)",
    )
    score_parser.add_argument(
        "--function",
        metavar="ID",
        help="Show only one function (e.g. GV)",
    )
    score_parser.set_defaults(func=cmd_score)

    # quality command
    quality_parser = subparsers.add_parser(
        "quality",
        help="Show assessment quality metrics",
        description="Consistency, documentation, completeness, and evidence quality.",
    )
    quality_parser.add_argument("--json", action="store_true", help="Output as JSON")
    quality_parser.set_defaults(func=cmd_quality)

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="List validation issues",
        description="Flag incomplete, inconsistent, or under-documented controls.",
    )
    validate_parser.add_argument("--json", action="store_true", help="Output as JSON")
    validate_parser.set_defaults(func=cmd_validate)

    # trends command
    trends_parser = subparsers.add_parser(
        "trends",
        help="Show progress trends",
        description="Completion and score trends, velocity, and projected completion.",
    )
    trends_parser.add_argument(
        "--period",
        choices=["week", "month", "quarter"],
        default="month",
        help="History period to list (default: month)",
    )
    trends_parser.add_argument("--json", action="store_true", help="Output as JSON")
    trends_parser.set_defaults(func=cmd_trends)

    # benchmark command
    benchmark_parser = subparsers.add_parser(
        "benchmark",
        help="Compare progress against benchmarks",
        description="Performance levels, top performing functions, and areas needing attention.",
    )
    benchmark_parser.add_argument("--json", action="store_true", help="Output as JSON")
    benchmark_parser.set_defaults(func=cmd_benchmark)

    # snapshot command
    snapshot_parser = subparsers.add_parser(
        "snapshot",
        help="Record a progress snapshot",
        description="Append the current completion and score to the history.",
    )
    snapshot_parser.set_defaults(func=cmd_snapshot)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export the assessment",
        description="Export the assessment as a JSON bundle or CSV.",
    )
    export_parser.add_argument(
        "--format",
        choices=["json", "csv"],
        default="json",
        help="Export format (default: json)",
    )
    export_parser.add_argument(
        "--output",
        metavar="PATH",
        help="Output file or directory (default: print to stdout)",
    )
    export_parser.add_argument(
        "--compress",
        action="store_true",
        help="Gzip compress JSON output files",
    )
    export_parser.set_defaults(func=cmd_export)

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Import assessment data",
        description="Import a JSON bundle or bare assessment map (.json or .json.gz).",
    )
    import_parser.add_argument("path", help="File to import")
    import_parser.set_defaults(func=cmd_import)

    # reset command
    reset_parser = subparsers.add_parser(
        "reset",
        help="Reset the assessment",
        description="Remove all assessment data for the configured framework.",
    )
    reset_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    reset_parser.set_defaults(func=cmd_reset)

    # demo command
    demo_parser = subparsers.add_parser(
        "demo",
        help="Generate demo data for quick evaluation",
        description="Replace the assessment with generated sample data and history.",
    )
    demo_parser.add_argument(
        "--profile",
        choices=["startup", "growing", "mature"],
        default="growing",
        help="Organization profile: startup (early), growing (moderate), mature (nearly done)",
    )
    demo_parser.add_argument(
        "--weeks",
        type=int,
        default=8,
        metavar="N",
        help="Weeks of snapshot history to generate (default: 8)",
    )
    demo_parser.add_argument(
        "--seed",
        type=int,
        metavar="N",
        help="Random seed for reproducible data",
    )
    demo_parser.set_defaults(func=cmd_demo)

    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    """Configure logging based on verbosity level."""
    if quiet:
        level = logging.WARNING
    elif verbose == 0:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config) if args.config else None
    return load_config(config_path)


def _load_manager(args: argparse.Namespace, settings: Settings | None = None) -> Any:
    """Build the assessment manager, loading settings unless given."""
    from csfassess.assessment import AssessmentManager

    manager = AssessmentManager.from_settings(settings or _load_settings(args))
    if manager.last_error:
        output_error(f"Warning: {manager.last_error}")
    return manager


def _report_save_error(manager: Any) -> int:
    if manager.last_error:
        output_error(f"Error: {manager.last_error}")
        return 1
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Show configuration and framework information."""
    import platform as platform_module

    from csfassess.catalog import get_available_frameworks, get_catalog

    info: dict[str, Any] = {
        "version": __version__,
        "python_version": platform_module.python_version(),
        "config_dir": str(DEFAULT_CONFIG_DIR),
        "config_file": str(Path(args.config) if args.config else get_config_path()),
        "frameworks": get_available_frameworks(),
        "settings": None,
        "catalog": None,
    }

    try:
        settings = _load_settings(args)
        info["settings"] = {
            "data_dir": settings.data_dir,
            "storage_backend": settings.storage.backend,
            "framework": settings.assessment.framework_id,
            "strategy": settings.assessment.strategy,
            "overall_mode": settings.assessment.overall_mode,
        }
        catalog = get_catalog(settings.assessment.framework_id)
        info["catalog"] = {
            "id": catalog.id,
            "name": catalog.name,
            "version": catalog.version,
            **catalog.get_statistics(),
        }
    except ConfigurationError as e:
        info["settings"] = {"error": str(e)}

    if args.json:
        output(json.dumps(info, indent=2, default=str), force=True)
        return 0

    output("csfassess System Information")
    output("=" * 60)
    output()
    output(f"Version: {info['version']}")
    output(f"Python: {info['python_version']}")
    output()
    output("Paths:")
    output(f"  Config directory: {info['config_dir']}")
    output(f"  Config file: {info['config_file']}")
    settings_info = info["settings"] or {}
    if "error" in settings_info:
        output(f"  Configuration error: {settings_info['error']}")
    else:
        output(f"  Data directory: {settings_info['data_dir']}")
        output()
        output("Assessment:")
        output(f"  Framework: {settings_info['framework']}")
        output(f"  Strategy: {settings_info['strategy']}")
        output(f"  Overall mode: {settings_info['overall_mode']}")
        output(f"  Storage backend: {settings_info['storage_backend']}")
    if info["catalog"]:
        catalog_info = info["catalog"]
        output()
        output(f"Catalog: {catalog_info['name']} {catalog_info['version']}")
        output(f"  Functions: {catalog_info['functions']}")
        output(f"  Categories: {catalog_info['categories']}")
        output(f"  Subcategories: {catalog_info['subcategories']}")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Create a default configuration file."""
    config_path = Path(args.config) if args.config else get_config_path()

    if config_path.exists() and not args.force:
        output(f"Config file already exists: {config_path}")
        output("Use --force to overwrite it.")
        return 1

    settings = Settings()
    if args.strategy:
        settings.assessment.strategy = args.strategy
    if args.backend:
        settings.storage.backend = args.backend

    save_config(settings, config_path)
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)

    output(f"Created config file: {config_path}")
    output(f"Data directory: {settings.data_dir}")
    output()
    output("Next steps:")
    output("  1. Run 'csfassess search <term>' to find controls")
    output("  2. Run 'csfassess set <control> --maturity 2 ...' to score a control")
    output("  3. Run 'csfassess score' to see your progress")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Search framework controls."""
    from csfassess.catalog import get_catalog

    settings = _load_settings(args)
    catalog = get_catalog(settings.assessment.framework_id)
    matches = catalog.search(args.term)

    if args.json:
        output(json.dumps([m.to_dict() for m in matches], indent=2), force=True)
        return 0

    if not matches:
        output(f"No controls match '{args.term}'.")
        return 0

    output(f"{len(matches)} controls match '{args.term}':")
    output()
    for control in matches:
        output(f"{control.id:<12} {control.function_name} / {control.category_name}")
        output(f"{'':<12} {control.description}")
    return 0


def cmd_set(args: argparse.Namespace) -> int:
    """Score a control."""
    from csfassess.scoring import AssessmentError

    manager = _load_manager(args)

    try:
        if manager.strategy.name == "quaternary":
            if args.response is None:
                output_error("Error: --response is required with the quaternary strategy")
                return 1
            response = manager.set_response(args.control, args.response)
            output(f"{args.control}: {response.value}")
        else:
            fields: dict[str, Any] = {}
            for name in ("maturity", "implementation", "evidence", "testing", "notes", "assessor"):
                value = getattr(args, name)
                if value is not None:
                    fields[name] = value
            if args.links:
                fields["evidence_links"] = args.links
            if not fields:
                output_error("Error: nothing to update")
                return 1
            record = manager.update_control(args.control, **fields)
            output(
                f"{args.control}: maturity={record.maturity} "
                f"implementation={record.implementation} "
                f"evidence={record.evidence} testing={record.testing} "
                f"(average {record.average:.2f})"
            )
    except AssessmentError as e:
        output_error(f"Error: {e}")
        return 1

    return _report_save_error(manager)


def cmd_score(args: argparse.Namespace) -> int:
    """Show completion and scores."""
    manager = _load_manager(args)
    breakdown = manager.breakdown()
    catalog = manager.catalog

    function_ids = [f.id for f in catalog.functions]
    if args.function:
        wanted = args.function.upper()
        if catalog.get_function(wanted) is None:
            output_error(f"Error: unknown function {args.function}")
            return 1
        function_ids = [wanted]

    if args.format == "json":
        output(json.dumps(breakdown.to_dict(), indent=2), force=True)
        return 0

    if args.format == "csv":
        headers = ["Function ID", "Function Name", "Completion", "Average Score", "Score", "Max Score"]
        rows = []
        for fid in function_ids:
            completion = breakdown.function_completion[fid]
            score = breakdown.by_function[fid]
            rows.append([
                fid,
                catalog.get_function(fid).name,
                f"{completion.completion:.2f}",
                f"{completion.average_score:.2f}",
                f"{score.score:.2f}",
                score.max_score,
            ])
        output(format_as_csv(headers, rows), force=True)
        return 0

    overall = breakdown.overall_completion
    output()
    output(f"{catalog.name} {catalog.version} Assessment ({breakdown.strategy})")
    output("=" * 60)
    output()
    output(f"Overall completion: {overall.completion:.1f}%")
    output(f"Average score: {overall.average_score:.1f}")
    output(f"Controls assessed: {breakdown.completed_controls} of {breakdown.total_controls}")
    output()
    output("By Function:")
    output("-" * 60)
    output(f"{'Function':<30} {'Completion':>12} {'Avg Score':>10} {'Assessed':>8}")
    output("-" * 60)
    for fid in function_ids:
        completion = breakdown.function_completion[fid]
        name = f"{fid} {catalog.get_function(fid).name}"
        output(
            f"{name:<30} {completion.completion:>11.1f}% {completion.average_score:>10.1f} "
            f"{completion.completed_controls:>4}/{completion.total_controls:<3}"
        )
    output("-" * 60)

    if _verbose_level > 0:
        output()
        output("By Category:")
        for fid in function_ids:
            for cid, result in breakdown.category_completion[fid].items():
                output(f"  {cid:<10} {result.completion:>6.1f}% {result.average_score:>6.1f}")

    flags = manager.attention_flags()
    if flags:
        output()
        output("Attention:")
        for flag in flags:
            output(f"  - {flag}")
    return 0


def cmd_quality(args: argparse.Namespace) -> int:
    """Show assessment quality metrics."""
    from csfassess.analysis import controls_requiring_attention

    manager = _load_manager(args)
    metrics = manager.quality()

    if args.json:
        output(json.dumps(metrics.to_dict(), indent=2), force=True)
        return 0

    if manager.strategy.name != "rubric":
        output("Quality metrics are only available for the rubric strategy.")
        return 0

    output()
    output("Assessment Quality")
    output("=" * 50)
    output(f"Assessed controls: {metrics.assessed_controls}")
    output()
    output(f"  Consistency:      {metrics.consistency:>6.1f}%")
    output(f"  Documentation:    {metrics.documentation:>6.1f}%")
    output(f"  Completeness:     {metrics.completeness:>6.1f}%")
    output(f"  Evidence quality: {metrics.evidence_quality:>6.1f}%")
    output("-" * 50)
    output(f"  Overall quality:  {metrics.overall_quality:>6.1f}%")

    attention = controls_requiring_attention(manager.catalog, manager.assessments)
    if attention:
        output()
        output(f"Controls requiring attention ({len(attention)}):")
        for ranked in attention[:10]:
            output(
                f"  {ranked.control.id:<12} average {ranked.score:.2f}, "
                f"variance {ranked.variance:.2f}"
            )
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """List validation issues."""
    from csfassess.analysis import summarize_issues

    manager = _load_manager(args)
    issues = manager.validation_issues()

    if args.json:
        result = {
            "summary": summarize_issues(issues),
            "issues": [i.to_dict() for i in issues],
        }
        output(json.dumps(result, indent=2), force=True)
        return 0

    if not issues:
        output("No validation issues found.")
        return 0

    summary = summarize_issues(issues)
    output(f"{summary['total']} validation issues:")
    output()
    for issue in issues:
        output(f"  [{issue.severity.value:<7}] {issue.control_id:<12} {issue.message}")
    return 0


def cmd_trends(args: argparse.Namespace) -> int:
    """Show progress trends."""
    from csfassess.analysis import progress_by_period

    manager = _load_manager(args)
    progress = manager.progress()
    trends = progress.trends
    recent = progress_by_period(manager.snapshots(), args.period)

    if args.json:
        result = {
            **trends.to_dict(),
            "flags": progress.flags.to_dict(),
            "history": [s.to_dict() for s in recent],
        }
        output(json.dumps(result, indent=2), force=True)
        return 0

    output()
    output("Progress Trends")
    output("=" * 50)
    if trends.trend_analysis.value == "insufficient_data":
        output("Not enough history yet. Run 'csfassess snapshot' regularly")
        output("to record progress.")
        return 0

    output(f"Overall trend:    {trends.overall_trend.value}")
    output(f"Completion trend: {trends.completion_trend:+.1f} points")
    output(f"Score trend:      {trends.score_trend:+.1f} points")
    output(f"Velocity:         {trends.velocity:.1f} controls/week ({trends.trend_analysis.value})")
    if trends.projected_completion:
        output(f"Projected completion: {trends.projected_completion.strftime('%Y-%m-%d')}")
    output()
    output(f"History (last {args.period}):")
    for snapshot in recent:
        output(
            f"  {snapshot.date.strftime('%Y-%m-%d')}  {snapshot.completion_rate:>6.1f}%  "
            f"score {snapshot.overall_score:>5.1f}  assessed {snapshot.assessed_controls}"
        )
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    """Compare progress against benchmarks."""
    manager = _load_manager(args)
    progress = manager.progress()

    if args.json:
        output(json.dumps(progress.to_dict(), indent=2), force=True)
        return 0

    benchmarks = progress.benchmarks
    output()
    output("Benchmarks")
    output("=" * 60)
    output(f"{'Metric':<18} {'Current':>10} {'Good':>8} {'Excellent':>10}  Level")
    output("-" * 60)
    for metric, target in benchmarks.targets.items():
        level = benchmarks.performance_level[metric].value
        output(
            f"{metric:<18} {benchmarks.current[metric]:>10.1f} {target.good:>8.0f} "
            f"{target.excellent:>10.0f}  {level}"
        )

    if progress.top_performers:
        output()
        output("Top performers:")
        for performer in progress.top_performers:
            output(
                f"  {performer.id} {performer.name}: score {performer.score:.1f}, "
                f"{performer.completion:.1f}% complete"
            )

    if progress.attention_areas:
        output()
        output("Areas needing attention:")
        for area in progress.attention_areas:
            output(f"  [{area.priority.value}] {area.area}: {area.type}")
    return 0


def cmd_snapshot(args: argparse.Namespace) -> int:
    """Record a progress snapshot."""
    manager = _load_manager(args)
    snapshot = manager.record_snapshot()
    if manager.last_error:
        output_error(f"Error: {manager.last_error}")
        return 1

    output(
        f"Recorded snapshot: {snapshot.completion_rate:.1f}% complete, "
        f"score {snapshot.overall_score:.1f}, "
        f"{snapshot.assessed_controls} controls assessed"
    )
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Export the assessment."""
    from csfassess.reports import JsonExporter

    settings = _load_settings(args)
    manager = _load_manager(args, settings)

    if args.format == "csv":
        content = manager.export_csv()
        if not args.output:
            output(content, force=True)
            return 0
        path = Path(args.output)
        if path.is_dir():
            path = path / f"{manager.catalog.id}_assessment.csv"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        output(f"Exported CSV to {path}")
        return 0

    if not args.output:
        output(manager.export_json(), force=True)
        return 0

    exporter = JsonExporter(organization=settings.reporting.organization or None)
    result = exporter.export_bundle(manager.export_bundle(), args.output, compress=args.compress)
    if not result.success:
        output_error(f"Export failed: {result.error}")
        return 1

    output(f"Exported {result.record_count} assessments to {result.path} ({result.size_bytes:,} bytes)")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import assessment data."""
    from csfassess.reports import load_import_file

    manager = _load_manager(args)
    try:
        content = load_import_file(args.path)
    except (OSError, UnicodeDecodeError) as e:
        output_error(f"Import failed: cannot read {args.path}: {e}")
        return 1

    result = manager.import_data(content)
    if not result.success:
        output_error(result.message)
        return 1

    output(result.message)
    if result.ignored_controls:
        output_verbose(f"Ignored: {', '.join(result.ignored_controls)}")
    return _report_save_error(manager)


def cmd_reset(args: argparse.Namespace) -> int:
    """Reset the assessment."""
    manager = _load_manager(args)

    if not args.yes:
        answer = input(
            f"Reset all assessment data for {manager.catalog.name}? "
            "This cannot be undone. [y/N] "
        )
        if answer.strip().lower() not in ("y", "yes"):
            output("Reset cancelled.")
            return 0

    if not manager.reset():
        output_error(f"Error: {manager.last_error}")
        return 1

    output("Assessment reset.")
    return 0


def cmd_demo(args: argparse.Namespace) -> int:
    """Generate demo data for quick evaluation."""
    from csfassess.demo import generate_demo_data

    manager = _load_manager(args)

    output("csfassess Demo Data Generator")
    output("=" * 50)
    output()
    output(f"Profile: {args.profile}")
    output(f"Strategy: {manager.strategy.name}")
    output(f"Weeks of history: {args.weeks}")
    output()

    summary = generate_demo_data(
        manager,
        profile=args.profile,
        weeks=args.weeks,
        seed=args.seed,
    )

    output("Demo data generated successfully!")
    output()
    output("Summary:")
    output(f"  Organization: {summary['organization']}")
    output(f"  Controls assessed: {summary['assessed_controls']} of {summary['total_controls']}")
    output(f"  Completion: {summary['completion']:.1f}%")
    output(f"  Snapshots: {summary['snapshots']}")
    output()
    output("Next steps:")
    output("  1. Run 'csfassess score' to see completion and scores")
    output("  2. Run 'csfassess trends' to see progress over time")
    output("  3. Run 'csfassess benchmark' to compare against targets")
    return _report_save_error(manager)


def main() -> NoReturn:
    """Main entry point for the csfassess CLI."""
    parser = create_parser()
    args = parser.parse_args()

    # Set up logging and output mode
    setup_logging(args.verbose, args.quiet)
    set_output_mode(args.quiet, args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        output("\nOperation cancelled.")
        sys.exit(130)
    except ConfigurationError as e:
        output_error(f"Configuration error: {e}")
        sys.exit(2)
    except Exception as e:
        if args.verbose > 0:
            raise
        output_error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
