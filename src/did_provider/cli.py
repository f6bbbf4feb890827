"""Command line entry point for the D-ID client."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from typing import Any, Callable

from .client import DidClient
from .core.config import DidSettings
from .errors import ConfigurationError, DidError
from .logging import configure_logging
from .models import Expression, Job

EXIT_OK = 0
EXIT_REMOTE_FAILURE = 1
EXIT_USAGE = 2


def _job_to_dict(job: Job) -> dict[str, Any]:
    return {
        "id": job.id,
        "kind": job.kind.value,
        "status": job.status.value,
        "result_url": job.result_url,
        "error": job.error,
    }


def _expression(value: str) -> Expression:
    try:
        return Expression.coerce(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="did-provider", description="Talking-avatar videos via D-ID.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level for diagnostics.")
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Create a video from audio and an avatar.")
    generate.add_argument("--audio", required=True, help="Audio URL, path or public:// reference.")
    target = generate.add_mutually_exclusive_group(required=True)
    target.add_argument("--image", help="Avatar image URL, path or public:// reference.")
    target.add_argument("--presenter", help="Stock presenter id.")
    generate.add_argument("--expression", type=_expression, default=Expression.NEUTRAL)
    generate.add_argument("--timeout", type=float, default=None, help="Polling budget in seconds.")
    generate.add_argument("--no-wait", action="store_true", help="Return right after submission.")

    commands.add_parser("presenters", help="List stock presenters.")

    talk = commands.add_parser("talk", help="Show one talk.")
    talk.add_argument("talk_id")
    return parser.parse_args(argv)


def run_command(args: argparse.Namespace, client: DidClient) -> Any:
    if args.command == "generate":
        job = client.generate(
            args.audio,
            image_ref=args.image,
            presenter_id=args.presenter,
            expression=args.expression,
            wait=not args.no_wait,
            timeout_seconds=args.timeout,
        )
        return _job_to_dict(job)
    if args.command == "presenters":
        return [
            {key: value for key, value in asdict(presenter).items() if key != "raw"}
            for presenter in client.list_presenters()
        ]
    if args.command == "talk":
        return _job_to_dict(client.get_talk(args.talk_id))
    raise ValueError(f"Unknown command {args.command}")


def main(
    argv: list[str] | None = None,
    *,
    client_factory: Callable[[DidSettings], DidClient] = DidClient.from_settings,
) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level.upper())
    try:
        with client_factory(DidSettings.build_default()) as client:
            payload = run_command(args, client)
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except DidError as exc:
        print(
            json.dumps({"error": str(exc), "reason": exc.reason, "retryable": exc.retryable}),
            file=sys.stderr,
        )
        return EXIT_REMOTE_FAILURE
    print(json.dumps(payload, indent=2))
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
