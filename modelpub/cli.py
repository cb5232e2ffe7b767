"""CLI entrypoints for modelpub commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, PublishConfig, apply_env_overrides, load_config
from .emitters import discover_emitters
from .logging import configure_logging
from .orchestrator import PublishError, PublishOrchestrator, PublishReport
from .site import use_system_collation


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modelpub",
        description="Publish a tree of model files as a documentation site with generated code.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Validate every model and publish the site into the build directory.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    build_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root holding .modelpub.yml (defaults to current directory).",
    )
    build_parser.add_argument("--source", help="Directory containing the model files.")
    build_parser.add_argument("--output", help="Directory receiving the published site.")
    build_parser.add_argument("--base-model", help="Model file to use as the trusted base model.")
    build_parser.add_argument(
        "--force-publish",
        action="store_true",
        default=None,
        help="Skip downloading external models and whole-graph validation.",
    )
    build_parser.add_argument("--server-root", help="URL prefix for links in generated pages.")
    build_parser.add_argument(
        "--no-clean",
        action="store_true",
        help="Keep the existing build directory instead of removing it first.",
    )
    build_parser.add_argument(
        "--format",
        dest="formats",
        action="append",
        help="Only run the named output format (repeatable).",
    )
    build_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report warnings and errors.",
    )
    build_parser.add_argument("--log-file", help="Also write the batch log to this file.")

    formats_parser = subparsers.add_parser("formats", help="List the available output formats.")
    _add_verbose_option(formats_parser, suppress_default=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP publishing service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def _config_from_args(args: argparse.Namespace) -> PublishConfig:
    config = apply_env_overrides(load_config(Path(args.path)))
    if args.source:
        config.source_dir = Path(args.source).expanduser().resolve()
    if args.output:
        config.build_dir = Path(args.output).expanduser().resolve()
    if args.base_model:
        config.base_model = Path(args.base_model).expanduser().resolve()
    if args.force_publish:
        config.force_publish = True
    if args.server_root is not None:
        config.site.server_root = args.server_root
    if args.no_clean:
        config.clean = False
    if args.formats:
        config.formats = list(args.formats)
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for modelpub commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = getattr(args, "log_file", None)
    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=Path(log_file).expanduser() if log_file else None,
    )
    use_system_collation()

    if args.command == "build":
        try:
            config = _config_from_args(args)
            report = PublishOrchestrator(config).run()
        except (ConfigError, PublishError) as exc:
            parser.exit(1, f"modelpub build failed: {exc}\n")
        except Exception as exc:  # pragma: no cover - defensive guard
            parser.exit(1, f"modelpub build failed: {exc}\nRun with --verbose for more details.\n")
        _print_summary(report, config)
    elif args.command == "formats":
        for emitter in discover_emitters():
            print(f"{emitter.name}\t{emitter.describe()}\t{emitter.scope}")
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_summary(report: PublishReport, config: PublishConfig) -> None:
    print(f"Published {len(report.records)} model(s) to {_relativize(config.build_dir)}")
    if report.rejections:
        print(f"Rejected {len(report.rejections)} model(s):")
        for rejection in report.rejections:
            print(f"  {_relativize(rejection.source_path)} [{rejection.kind}] {rejection.message}")
    if report.emit_failures:
        print(f"{len(report.emit_failures)} output(s) could not be generated")
    if report.index_error:
        print(f"Site index was not written: {report.index_error}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
