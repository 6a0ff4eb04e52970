"""CLI entrypoints for prettyconf commands."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

import yaml

from .config import PrettyConfConfig, load_config
from .errors import PrettyConfError
from .loader.build_constraints import BuildContext
from .loader.extractor import TypeMetadataExtractor
from .loader.go_source import GoSourceProvider, ModuleRoot, find_module
from .logging import configure_logging, get_logger
from .printer.render import render
from .printer.yaml_text import load_document, loads_document


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


def _add_source_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-C",
        "--directory",
        default=".",
        help="Directory inside the Go module to load packages from (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .prettyconf.yml file (defaults to the one in --directory).",
    )
    parser.add_argument(
        "--tag-key",
        default=None,
        help="Struct tag key that names serialized fields (defaults to json).",
    )
    parser.add_argument(
        "--tags",
        default=None,
        help="Comma-separated build tags to satisfy when selecting Go files.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prettyconf",
        description="Render Go configuration structs as documented YAML.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write DEBUG diagnostics to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser(
        "render",
        help="Render an instance document with zero-filled, documented fields.",
    )
    _add_verbose_option(render_parser, suppress_default=True)
    _add_source_options(render_parser)
    render_parser.add_argument("package", help="Import path of the package declaring the type.")
    render_parser.add_argument("type", help="Name of the record type to render.")
    render_parser.add_argument(
        "-i",
        "--instance",
        default=None,
        help="YAML or JSON instance document (defaults to stdin; omit input for an all-zero document).",
    )
    render_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write the rendered document to this path instead of stdout.",
    )
    render_parser.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Indentation width of nested blocks.",
    )
    render_parser.add_argument(
        "--no-root-comment",
        action="store_true",
        help="Omit the type documentation at the top of the document.",
    )

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Dump the type metadata extracted from packages.",
    )
    _add_verbose_option(inspect_parser, suppress_default=True)
    _add_source_options(inspect_parser)
    inspect_parser.add_argument("packages", nargs="+", help="Import paths of the packages to inspect.")
    inspect_parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format of the metadata dump.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for prettyconf commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if args.log_file else None,
    )
    logger = get_logger("cli")

    try:
        directory = Path(args.directory)
        config = load_config(Path(args.config) if args.config else directory)
        provider = _build_provider(config, directory, args.tags)
        tag_key = args.tag_key or config.tag_key
        if args.command == "render":
            instance = _read_instance(args.instance)
            indent = args.indent if args.indent is not None else config.output.indent
            if indent < 1:
                parser.exit(1, "--indent must be a positive integer\n")
            output = Path(args.output) if args.output else None
            text = render(
                instance,
                provider,
                output,
                package=args.package,
                type_name=args.type,
                tag_key=tag_key,
                indent=indent,
                root_comment=config.output.root_comment and not args.no_root_comment,
            )
            if output is None:
                sys.stdout.write(text)
            else:
                logger.debug("rendered %s.%s to %s", args.package, args.type, output)
        elif args.command == "inspect":
            catalog = TypeMetadataExtractor(provider, tag_key=tag_key).extract(args.packages)
            data = catalog.as_dict()
            if args.format == "json":
                sys.stdout.write(json.dumps(data, indent=2) + "\n")
            else:
                sys.stdout.write(yaml.safe_dump(data, sort_keys=False, allow_unicode=True))
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except PrettyConfError as exc:
        parser.exit(1, f"{exc.kind}: {exc}\n")


def _build_provider(
    config: PrettyConfConfig, directory: Path, tags: str | None = None
) -> GoSourceProvider:
    modules = [ModuleRoot(path=module.path, directory=module.dir) for module in config.modules]
    if not modules:
        modules = [find_module(directory)]
    build_tags = set(config.build_tags)
    if tags:
        build_tags.update(tag.strip() for tag in tags.split(",") if tag.strip())
    build = BuildContext.default(frozenset(build_tags))
    if config.goos or config.goarch:
        build = replace(build, goos=config.goos or build.goos, goarch=config.goarch or build.goarch)
    return GoSourceProvider(modules, goroot=config.goroot, vendor=config.vendor, build=build)


def _read_instance(instance: str | None) -> dict:
    if instance and instance != "-":
        return load_document(Path(instance))
    if instance is None and sys.stdin.isatty():
        return {}
    return loads_document(sys.stdin.read())


if __name__ == "__main__":
    main(sys.argv[1:])
