"""Configure logging for the command-line tool.

The library modules only create loggers; handlers are installed here.
"""

import logging
import sys

_HANDLER_NAME = "pocket_bookmarks.cli"


def setup_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger("pocket_bookmarks")
    root.setLevel(level)
    # Replace the handler from an earlier call; the CLI may run repeatedly in-process
    for old in [h for h in root.handlers if getattr(h, "name", None) == _HANDLER_NAME]:
        root.removeHandler(old)
    handler.set_name(_HANDLER_NAME)
    root.addHandler(handler)

    # httpx logs full request URLs at INFO; keep it quiet unless debugging
    httpx_level = logging.DEBUG if debug else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.getLogger("httpcore").setLevel(httpx_level)
