from __future__ import annotations

import argparse
import json
import sys
from typing import Callable, Sequence

from .config import config_sha256, load_config, resolve_environment, validate_config
from .config_schema import PipelineConfig
from .diagnostics import PipelineStats, StderrReporter, describe_rejection
from .errors import (
    ConfigError,
    EventTypeUnrecognizedError,
    RecordError,
    SourceUnavailableError,
)
from .event import Event
from .pipeline import load_events
from .run_log import RunLogger


def _add_pipeline_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        help="Optional YAML config file.",
    )
    parser.add_argument(
        "--input",
        help="Input file of JSON records (overrides INPUT_PATH and the config).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every identity rejected by the email filter.",
    )
    parser.add_argument(
        "--abort-on-unknown-event",
        action="store_true",
        help="Stop the run on an unrecognized event type instead of skipping the record.",
    )
    parser.add_argument(
        "--run-log",
        help="Write a JSONL audit log of the run to this path.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="content_events")

    subparsers = parser.add_subparsers(dest="command", required=True)

    summarize = subparsers.add_parser(
        "summarize",
        help="Run the pipeline and print record counts.",
    )
    _add_pipeline_arguments(summarize)
    summarize.set_defaults(_handler=_cmd_summarize)

    events = subparsers.add_parser(
        "events",
        help="Print every accepted event as one JSON object per line.",
    )
    _add_pipeline_arguments(events)
    events.set_defaults(_handler=_cmd_events)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _resolve_config(args: argparse.Namespace) -> PipelineConfig:
    cfg = load_config(args.config) if args.config else PipelineConfig()
    cfg = resolve_environment(cfg)

    update: dict[str, object] = {}
    if args.input:
        update["input_path"] = args.input
    if args.debug:
        update["debug"] = True
    if args.abort_on_unknown_event:
        update["unknown_event_policy"] = "abort"

    if not update:
        return cfg
    merged = cfg.model_dump()
    merged.update(update)
    return validate_config(merged, source="command line")


def _run_pipeline(
    args: argparse.Namespace, consume: Callable[[Event], None]
) -> tuple[PipelineConfig, PipelineStats]:
    with RunLogger.open(args.run_log) as log:
        log.info("load_started", command=args.command)

        try:
            cfg = _resolve_config(args)
            log.info(
                "config_loaded",
                config_path=args.config,
                config_sha256=config_sha256(cfg),
                input_path=cfg.input_path,
                debug=cfg.debug,
                unknown_event_policy=cfg.unknown_event_policy,
            )

            reporter = StderrReporter()

            def on_reject(error: RecordError) -> None:
                reporter(error)
                log.warning(
                    "record_rejected",
                    record_index=error.index,
                    error_type=type(error).__name__,
                    reason=describe_rejection(error),
                )

            with load_events(config=cfg, on_reject=on_reject) as stream:
                for event in stream:
                    consume(event)

            log.info("load_completed", input_path=cfg.input_path, **stream.stats.as_dict())
            return cfg, stream.stats
        except Exception as e:
            log.exception("load_failed", exc=e)
            raise


def _cmd_summarize(args: argparse.Namespace) -> int:
    cfg, stats = _run_pipeline(args, lambda event: None)

    print(f"input_path={cfg.input_path}")
    for key, value in stats.as_dict().items():
        print(f"{key}={value}")

    return 0


def _cmd_events(args: argparse.Namespace) -> int:
    def emit(event: Event) -> None:
        print(json.dumps(event.to_dict(), ensure_ascii=False, sort_keys=True))

    _run_pipeline(args, emit)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except SourceUnavailableError as e:
        _eprint(str(e))
        return 3
    except EventTypeUnrecognizedError as e:
        _eprint(f"Aborted: {describe_rejection(e)}")
        return 4
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
