"""celerity-config CLI: inspect configuration as the running service sees it.

Usage:
    celerity-config platform                 # Resolved deployment platform
    celerity-config resolve database         # Provider + properties for a resource
    celerity-config resolve database orders  # ...for a named instance
    celerity-config show                     # Fetch the config store (values masked)
    celerity-config show --namespace payments --reveal
    celerity-config serve                    # Start the HTTP server
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .env import celerity_env
from .errors import ConfigError
from .layer import ConfigLayerSettings, build_config_service
from .resolver import resolve_config

MASK = "********"


def _configure_logging(level: Optional[str]) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or "warning").upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def cmd_platform(args: argparse.Namespace) -> int:
    """Print the resolved platform token."""
    print(celerity_env.get_platform().value)
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    """Print the resolved provider and properties for a resource as JSON."""
    resolved = resolve_config(args.resource_type, args.resource_name)
    print(json.dumps(
        {"provider": resolved.provider, "properties": resolved.properties},
        indent=2,
        sort_keys=True,
    ))
    return 0


async def _fetch_namespaces(namespace: Optional[str]) -> dict[str, dict[str, str]]:
    settings = ConfigLayerSettings.from_env()
    service = build_config_service(settings)

    names = [namespace] if namespace else service.namespace_names
    return {name: await service.namespace(name).get_all() for name in names}


def cmd_show(args: argparse.Namespace) -> int:
    """Fetch and print every namespace (or one) from its config store."""
    try:
        snapshots = asyncio.run(_fetch_namespaces(args.namespace))
    except (ConfigError, ValueError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if not snapshots:
        print("⚠️  No config namespaces found (set CELERITY_CONFIG_STORE_ID)", file=sys.stderr)
        return 1

    for name, values in snapshots.items():
        print(f"[{name}]")
        for key in sorted(values):
            print(f"{key}={values[key] if args.reveal else MASK}")
    return 0


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the HTTP server."""
    from .server.app import run_server

    run_server(
        host=args.host,
        port=args.port,
        log_level=args.log_level or "info",
    )


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="celerity-config",
        description="Celerity Config: environment and config store resolution",
    )
    parser.add_argument("--log-level", type=str, default=None,
                        choices=["debug", "info", "warning", "error"])
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # platform
    subparsers.add_parser("platform", help="Print the resolved deployment platform")

    # resolve
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve provider and properties for a resource"
    )
    resolve_parser.add_argument("resource_type", help="Resource type, e.g. database")
    resolve_parser.add_argument("resource_name", nargs="?", default=None,
                                help="Optional resource instance name")

    # show
    show_parser = subparsers.add_parser("show", help="Fetch and print config namespaces")
    show_parser.add_argument("--namespace", "-n", type=str, default=None,
                             help="Only show this namespace")
    show_parser.add_argument("--reveal", action="store_true",
                             help="Print values instead of masking them")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1")
    serve_parser.add_argument("--port", "-p", type=int, default=18800)

    args = parser.parse_args()
    _configure_logging(args.log_level)

    if args.command == "platform":
        sys.exit(cmd_platform(args))
    elif args.command == "resolve":
        sys.exit(cmd_resolve(args))
    elif args.command == "show":
        sys.exit(cmd_show(args))
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
