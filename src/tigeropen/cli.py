"""Command-line smoke test for the OpenAPI client."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .client import TigerOpenClient
from .config import ClientConfig, load_env_file
from .exceptions import TigerOpenError
from .logging_utils import configure_logging
from .requests import AssetsRequest, PositionsRequest

DEFAULT_LANG = "zh_CN"


def _build_client(env_path: str, lang: str | None) -> TigerOpenClient:
    """Create a client from an env file of ``key=value`` lines.

    ``lang`` wins over a ``lang`` line in the file, which wins over
    :data:`DEFAULT_LANG`.
    """
    values = load_env_file(env_path)
    if not values.get("lang"):
        values["lang"] = DEFAULT_LANG
    config = ClientConfig.from_mapping(values, lang=lang)
    return TigerOpenClient(config)


def _dry_run(client: TigerOpenClient) -> int:
    """Build, self-verify and print a signed assets envelope."""
    request = AssetsRequest(segment=True, market_value=True)
    envelope = client.build_envelope("assets", request.to_biz(client.config))
    valid = client.assembler.signer.verify(envelope.sign_content, envelope.signature)
    print(
        json.dumps(
            {
                "method": envelope.method,
                "valid": valid,
                "content_type": envelope.content_type,
                "body": envelope.body,
            },
            separators=(",", ":"),
            ensure_ascii=False,
        )
    )
    return 0 if valid else 1


def _health_check(client: TigerOpenClient) -> int:
    """Fetch assets and positions in turn, reporting each outcome."""
    status = 0
    try:
        assets = client.get_assets(AssetsRequest(segment=True, market_value=True))
    except TigerOpenError as exc:
        print(f"assets failed: {exc}", file=sys.stderr)
        status = 1
    else:
        print(f"assets code={assets.response.code} items={len(assets.items)}")

    try:
        positions = client.get_positions(PositionsRequest())
    except TigerOpenError as exc:
        print(f"positions failed: {exc}", file=sys.stderr)
        status = 1
    else:
        print(f"positions code={positions.response.code} items={len(positions.items)}")
    return status


def main(argv: list[str] | None = None) -> int:
    """Run the smoke test."""
    parser = argparse.ArgumentParser(
        description="Smoke-test signed OpenAPI requests using an env file."
    )
    parser.add_argument(
        "env_file",
        nargs="?",
        default="text.env",
        help="Path to a key=value file with tiger_id, account and private key.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build and verify a signed assets envelope without sending it.",
    )
    parser.add_argument(
        "--lang",
        default=None,
        help="Language tag added to business content (default: the env file's "
        f"lang, else {DEFAULT_LANG}).",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit log records as JSON lines.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    handler = configure_logging(
        logging.DEBUG if args.verbose else logging.WARNING,
        json_output=args.json_logs,
    )
    try:
        try:
            client = _build_client(args.env_file, args.lang)
        except (OSError, TigerOpenError) as exc:
            print(f"init client: {exc}", file=sys.stderr)
            return 1

        if args.dry_run:
            try:
                return _dry_run(client)
            except TigerOpenError as exc:
                print(f"dry run failed: {exc}", file=sys.stderr)
                return 1
        return _health_check(client)
    finally:
        logging.getLogger("tigeropen").removeHandler(handler)


if __name__ == "__main__":
    raise SystemExit(main())
