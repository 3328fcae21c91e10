"""Loguru-style bound logger over stdlib logging + rich.

Usage::

    from cloudenv.observability.logger import logger

    log = logger.bind(component="reconciler")
    log.info("Polled {n} runtimes", n=4)

The ``cloudenv`` root logger does not propagate and has no handlers until
``logger.add`` installs one, so the library is silent by default.
"""

from __future__ import annotations

import inspect
import logging
import logging.handlers
import os
import sys
from typing import TextIO

from rich.logging import RichHandler

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_root = logging.getLogger("cloudenv")

_FILE_FORMAT = (
    "%(asctime)s.%(msecs)03d | %(levelname)-8s | "
    "%(name)s:%(funcName)s:%(lineno)d - %(message)s"
)


def _caller() -> inspect.FrameInfo:
    return inspect.stack()[3]


def _format_message(msg: str, args: tuple[object, ...], kwargs: dict[str, object]) -> str:
    if kwargs:
        return msg.format(**kwargs)
    if args:
        return msg.format(*args)
    return msg


class BoundLogger:
    __slots__ = ("_extras",)

    def __init__(self, extras: dict[str, object] | None = None) -> None:
        self._extras = extras or {}

    def bind(self, **kwargs: object) -> BoundLogger:
        return BoundLogger({**self._extras, **kwargs})

    def _log(self, level: int, message: str, /, *args: object, **kwargs: object) -> None:
        exc_info = bool(kwargs.pop("exc_info", False))
        frame = _caller()
        module = frame.frame.f_globals.get("__name__", "cloudenv")
        target = logging.getLogger(module)
        if not target.isEnabledFor(level):
            return
        record = target.makeRecord(
            name=target.name,
            level=level,
            fn=frame.filename,
            lno=frame.lineno,
            msg=_format_message(message, args, kwargs),
            args=(),
            exc_info=sys.exc_info() if exc_info else None,
            func=frame.function,
            extra=dict(self._extras),
        )
        record.filename = os.path.basename(frame.filename)
        record.extras = self._extras  # type: ignore[attr-defined]
        target.handle(record)

    def trace(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(TRACE, message, *args, **kwargs)

    def debug(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, /, *args: object, **kwargs: object) -> None:
        kwargs["exc_info"] = True
        self._log(logging.ERROR, message, *args, **kwargs)


def _file_handler(path: str, level: int, max_mb: int, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backups,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        level=level,
        show_time=True,
        show_level=True,
        show_path=True,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    return handler


class _Logger(BoundLogger):
    """Root bound logger with sink management."""

    __slots__ = ("_handlers", "_next_id")

    def __init__(self) -> None:
        super().__init__()
        self._handlers: dict[int, logging.Handler] = {}
        self._next_id = 0

    def add(
        self,
        sink: str | TextIO,
        *,
        level: str = "INFO",
        max_mb: int = 50,
        backups: int = 5,
    ) -> int:
        numeric = TRACE if level.upper() == "TRACE" else getattr(logging, level.upper(), logging.INFO)
        match sink:
            case str() as path:
                handler = _file_handler(path, numeric, max_mb, backups)
            case _:
                handler = _console_handler(numeric)
        _root.addHandler(handler)
        self._next_id += 1
        self._handlers[self._next_id] = handler
        return self._next_id

    def remove(self, handler_id: int | None = None) -> None:
        if handler_id is None:
            for handler in self._handlers.values():
                _root.removeHandler(handler)
            self._handlers.clear()
            return
        if handler := self._handlers.pop(handler_id, None):
            _root.removeHandler(handler)


logger = _Logger()

_root.setLevel(TRACE)
_root.propagate = False
