"""
Command-line interface for planning storage-entity converters.

Reads a schema batch (YAML/JSON), validates it, resolves every field
mapping and writes the resulting plan as YAML for the template emitter.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn

from dalmap.config import Backend, EngineSettings
from dalmap.exceptions import (
    ConfigurationError,
    DalMapError,
    SchemaLoadError,
    SchemaValidationError,
)
from dalmap.io.plan_writer import PlanWriter
from dalmap.ir.plan import DiagnosticCode
from dalmap.pipeline import MappingPipeline


def configure_logging(debug: bool = False, verbose: bool = False) -> None:
    """Configure application logging.

    Args:
        debug: Enable debug-level logging if True.
        verbose: Enable verbose logging from the planner if True.
    """
    if debug:
        level = logging.DEBUG
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    elif verbose:
        level = logging.INFO
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    else:
        level = logging.INFO
        format_str = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        stream=sys.stderr,
        force=True,  # Override existing configuration
    )

    if not verbose and not debug:
        # Quiet mode: only gaps, warnings and errors from the engine
        logging.getLogger("dalmap").setLevel(logging.WARNING)
        logging.getLogger(__name__).setLevel(logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dalmap",
        description=(
            "Plan field mappings and converters between wire messages and "
            "storage entities"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plan a schema batch for GORM targets
  dalmap schema/library.yaml out/plan.yaml --backend gorm

  # Use a settings file and show debug output
  dalmap schema/library.yaml out/plan.yaml --config dalmap.yaml --debug
        """,
    )
    parser.add_argument("schema", type=Path, help="Schema batch (.yaml/.yml/.json)")
    parser.add_argument(
        "output_file", type=Path, help="Path where the YAML plan will be saved"
    )
    parser.add_argument(
        "-c", "--config", type=Path, help="YAML file with engine settings"
    )
    parser.add_argument(
        "--backend",
        choices=[b.value for b in Backend],
        help="Target naming convention (overrides the settings file)",
    )
    parser.add_argument(
        "--helpers-package",
        help="Import path of the well-known type helpers",
    )
    parser.add_argument(
        "--no-narrowing-warnings",
        action="store_true",
        help="Do not report lossy numeric casts",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging for detailed output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    return parser


def load_settings(args: argparse.Namespace) -> EngineSettings:
    settings = (
        EngineSettings.from_file(args.config) if args.config else EngineSettings()
    )
    return settings.with_overrides(
        backend=args.backend,
        helpers_package=args.helpers_package,
        warn_on_narrowing=False if args.no_narrowing_warnings else None,
    )


def run(args: argparse.Namespace) -> int:
    """Execute a planning run; return the process exit code."""
    configure_logging(args.debug, args.verbose)
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(args)
        plan = MappingPipeline(args.schema, settings).run()
        PlanWriter().save(plan, args.output_file)
    except SchemaLoadError as e:
        logger.error(f"Schema load error: {e}")
        return 1
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except SchemaValidationError as e:
        for error in e.errors:
            logger.error(str(error))
        logger.info(f"Suggestion: {e.get_recovery_hint()}")
        return 3
    except DalMapError as e:
        logger.error(f"Planning error: {e}")
        return 4
    except OSError as e:
        logger.error(f"File system error: {e}")
        return 5

    gaps = [d for d in plan.diagnostics if d.code == DiagnosticCode.CONVERSION_GAP]
    logger.info(
        f"Planned {len(plan.messages)} message(s) with {len(gaps)} gap(s): "
        f"{args.output_file}"
    )
    return 0


def main(argv: list[str] | None = None) -> NoReturn:
    args = build_parser().parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
