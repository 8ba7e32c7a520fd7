import logging


class CustomFormatter(logging.Formatter):
    """Colours the level letter of each record."""

    grey = "\x1b[38;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    fmt = "[%(levelname).1s] %(message)s"

    FORMATS = {
        logging.DEBUG: grey + fmt + reset,
        logging.INFO: fmt,
        logging.WARNING: yellow + fmt + reset,
        logging.ERROR: red + fmt + reset,
        logging.CRITICAL: bold_red + fmt + reset,
    }

    def format(self, record: logging.LogRecord) -> str:
        formatter = logging.Formatter(self.FORMATS.get(record.levelno, self.fmt))
        return formatter.format(record)


def setup_logging(logger: logging.Logger, verbose: bool = False) -> logging.Handler:
    """Attaches a coloured console handler to the given logger and to the library logger."""
    level = logging.DEBUG if verbose else logging.INFO
    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(CustomFormatter())
    logger.setLevel(level)
    logger.addHandler(ch)
    # also add to "wa_dump_tools.lib" logger
    lib_logger = logging.getLogger("wa_dump_tools.lib")
    lib_logger.addHandler(ch)
    lib_logger.setLevel(level)
    return ch
