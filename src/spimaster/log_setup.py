"""Console logging for the build entry point."""

import logging
import sys

RESET = "\x1b[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\x1b[36;20m",
    logging.INFO: "\x1b[32;20m",
    logging.WARNING: "\x1b[33;20m",
    logging.ERROR: "\x1b[31;20m",
    logging.CRITICAL: "\x1b[31;1m",
}


class ColoredFormatter(logging.Formatter):
    """Formatter which colors the level name of a record.

    With colors=False the output is plain, for logs written to a file or
    a pipe.
    """

    def __init__(self, colors=True):
        super().__init__(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S"
        )
        self.colors = colors

    def formatMessage(self, record):
        line = super().formatMessage(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not self.colors or color is None:
            return line
        return line.replace(record.levelname, f"{color}{record.levelname}{RESET}", 1)


def configure_logging(level=logging.INFO, stream=None):
    """Installs a single console handler on the root logger.

    Calling it again only changes the level. Colors are used when the
    stream is a terminal.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers:
        if isinstance(handler.formatter, ColoredFormatter):
            handler.setLevel(level)
            break
    else:
        if stream is None:
            stream = sys.stderr
        handler = logging.StreamHandler(stream)
        handler.setLevel(level)
        handler.setFormatter(ColoredFormatter(colors=stream.isatty()))
        root.addHandler(handler)

    # yosys / nextpnr output is forwarded by amaranth, keep it quiet
    logging.getLogger("amaranth").setLevel(logging.WARNING)
