"""Central logging configuration helpers for clusterstats."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from typing import Any, TextIO

from loguru import logger

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)

PACKAGE_PREFIX = "clusterstats."


def _scope_matches(record_name: str, scope: str) -> bool:
    if record_name.startswith(scope):
        return True
    return not scope.startswith(PACKAGE_PREFIX) and record_name.startswith(
        f"{PACKAGE_PREFIX}{scope}"
    )


def _scoped_debug_filter(
    scopes: tuple[str, ...],
) -> Callable[[dict[str, Any]], bool]:
    def accept(record: dict[str, Any]) -> bool:
        if record["level"].name != "DEBUG":
            return False
        record_name = record.get("name") or ""
        return any(_scope_matches(record_name, scope) for scope in scopes)

    return accept


def configure_logging(
    level: str,
    *,
    debug_scopes: Iterable[str] = (),
    colorize: bool = False,
    sink: TextIO | None = None,
) -> tuple[int, ...]:
    """
    Configure loguru with module-based debug filtering.

    ``debug_scopes`` turns on DEBUG output for matching modules only, e.g.
    ``core.cluster_model_stats`` while the rest of the package stays at
    ``level``. Scopes may omit the ``clusterstats.`` prefix. Output goes to
    ``sink``, standard error by default.

    Returns the loguru handler ids that were added.
    """
    logger.remove()
    target = sink if sink is not None else sys.stderr
    level = level.upper()

    handler_ids = [
        logger.add(target, level=level, format=DEFAULT_LOG_FORMAT, colorize=colorize)
    ]

    scopes = tuple(scope.strip() for scope in debug_scopes if scope.strip())
    if scopes and level != "DEBUG":
        handler_ids.append(
            logger.add(
                target,
                level="DEBUG",
                format=DEFAULT_LOG_FORMAT,
                colorize=colorize,
                filter=_scoped_debug_filter(scopes),
            )
        )
    return tuple(handler_ids)
