"""structlog setup for cargo-kcov.

Log events are diagnostics for the person debugging a coverage run; the
progress lines a user normally sees come from ``core.console``. Events go
through stdlib logging so that several outputs (stderr plus a JSON file, say)
can each have their own level and format. Every event of one run carries the
same ``run_id``.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from cargo_kcov.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

_STREAM_NAMES = ("stderr", "stdout")


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Start a coverage run, generating an ID unless one is given."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)


def _stamp_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    rid = get_run_id()
    if rid is not None:
        event_dict.setdefault("run_id", rid)
    return event_dict


def _level_number(name: str | None, fallback: int = logging.WARNING) -> int:
    if not name:
        return fallback
    return logging.getLevelNamesMapping().get(name.upper(), fallback)


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _stamp_run_id,  # type: ignore[list-item]
    ]


def _open_destination(destination: str) -> logging.Handler:
    # current sys.stderr/stdout, which test runners replace
    if destination in _STREAM_NAMES:
        return logging.StreamHandler(getattr(sys, destination))
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _renderer(output: LogOutputConfig, stream_is_tty: bool) -> structlog.types.Processor:
    if output.format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=stream_is_tty,
        pad_event_to=0,
        pad_level=False,
    )


def _output_handler(
    output: LogOutputConfig,
    root_level: int,
    pre_chain: list[structlog.types.Processor],
) -> logging.Handler:
    handler = _open_destination(output.destination)
    stream = getattr(handler, "stream", None)
    is_tty = output.destination in _STREAM_NAMES and bool(stream and stream.isatty())
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(output, is_tty),
            foreign_pre_chain=pre_chain,
        )
    )
    handler.setLevel(_level_number(output.level, root_level))
    return handler


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    verbose: bool = False,
    json_format: bool = False,
    level: str = "WARNING",
) -> None:
    """(Re)configure logging for one CLI invocation.

    Args:
        config: Logging section of the loaded configuration. When omitted, a
            single stderr output is built from ``json_format`` and ``level``.
        verbose: ``-v`` was given; lowers the root level to DEBUG.
        json_format: Render the default output as JSON lines.
        level: Root level for the default output.
    """
    from cargo_kcov.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = logging.DEBUG if verbose else _level_number(config.level)
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # reconfigured per invocation (CliRunner runs many in one process)
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for stale in list(root.handlers):
        root.removeHandler(stale)
        stale.close()
    root.setLevel(root_level)
    for output in config.outputs:
        root.addHandler(_output_handler(output, root_level, pre_chain))


def reset_logging() -> None:
    """Drop configured outputs and go back to the import-time defaults.

    Until ``configure_logging`` runs, WARNING and above reach stderr through
    logging's last-resort handler and everything below is filtered out.
    """
    root = logging.getLogger()
    for stale in list(root.handlers):
        root.removeHandler(stale)
        stale.close()
    root.setLevel(logging.WARNING)
    structlog.configure(
        processors=[*_pre_chain(), structlog.dev.ConsoleRenderer(colors=False)],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger tagged with ``name`` (shown as the ``logger`` field).

    Safe at module level: the returned proxy resolves against whatever
    configuration is current when each event is logged.
    """
    if name:
        return structlog.get_logger(logger=name)  # type: ignore[no-any-return]
    return structlog.get_logger()  # type: ignore[no-any-return]


reset_logging()
