from __future__ import annotations

import argparse
from pathlib import Path

from modfuser import (
    ConfigurationError,
    FusionError,
    LogSink,
    export_report,
    fuse,
    load_fusion_config,
    print_fusion_summary,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Fuse the per-platform jars of a multi-loader mod into a single jar, "
            "relocating each platform's classes and resources so they do not collide."
        )
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("fusion.toml"),
        help="Path to the fusion configuration TOML file.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Override the output jar path from the configuration.",
    )
    parser.add_argument(
        "--skip-if-exists",
        action="store_true",
        default=False,
        help="Do nothing when the output jar already exists.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of variants to process in parallel.",
    )
    parser.add_argument(
        "--export-path",
        type=Path,
        default=Path(""),
        help="Path to save the fusion report Excel file.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Print debug details about each step.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    sink = LogSink(verbose=args.verbose)

    try:
        config = load_fusion_config(args.config.expanduser())
    except (ConfigurationError, OSError) as exc:
        raise SystemExit(str(exc)) from exc

    if args.output is not None:
        config.output = args.output.expanduser().resolve()
    if args.skip_if_exists:
        config.skip_if_exists = True
    if args.workers is not None:
        config.workers = max(args.workers, 1)

    try:
        result = fuse(config, sink=sink)
    except (ConfigurationError, FusionError, OSError) as exc:
        raise SystemExit(f"Fusion failed: {exc}") from exc

    print_fusion_summary(result, sink)

    export_path = args.export_path
    if not export_path == Path(""):
        if export_path.suffix.lower() != ".xlsx":
            export_path = export_path / "fusion_report.xlsx"
        export_report(output_path=export_path, result=result)
        sink.info(f"Report saved to {export_path}")


if __name__ == "__main__":
    main()
