"""
Pipeline logging for sdkgen.

Every module logs through ``get_logger(__name__)``, which maps it onto a flat
``sdkgen.gen.<module>`` child (``sdkgen.gen.enums``, ``sdkgen.gen.perf``, ...).
Messages carry their stage as a bracketed tag so a run reads as a trace:

    [DETECT] [ADAPTER] [CONTEXT] [GENERATED] [TRANSFORM] [FORMAT]
    [CHECKSUM] [UPGRADE] [PERF] [WARN]

Nothing is printed until configure_gen_logging() runs; the CLI group does
that once per invocation, from its -v/-q flags.
"""

import logging
import sys

_LOGGER_NAME = "sdkgen.gen"


def get_logger(name: str = None) -> logging.Logger:
    """
    Logger for a pipeline module.

    Args:
        name: The caller's __name__. Only its last dotted part is kept, so
            "sdkgen.postprocess.enums" logs as "sdkgen.gen.enums". None gives
            the shared parent logger.
    """
    if name is None or name == _LOGGER_NAME:
        return logging.getLogger(_LOGGER_NAME)
    short = name.rsplit(".", 1)[-1]
    return logging.getLogger(f"{_LOGGER_NAME}.{short}")


def configure_gen_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Send pipeline messages to stderr at the level the CLI asked for.

    -v shows every rendered file, compiled template and planned enum rewrite
    (DEBUG). The default shows one summary line per stage (INFO). -q keeps
    only warnings, such as fallback notices, skipped declarations and
    performance regressions.

    Calling it again only changes the level; the stderr handler is installed
    once.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    root_logger = logging.getLogger(_LOGGER_NAME)
    root_logger.setLevel(level)

    if root_logger.handlers:
        for handler in root_logger.handlers:
            handler.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_GenFormatter())
    root_logger.addHandler(handler)

    # stdout is reserved for command output (detect JSON, checksums)
    root_logger.propagate = False


class _GenFormatter(logging.Formatter):
    """Tagged message text, followed by the traceback when one is attached."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message
