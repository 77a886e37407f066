import os, logging, sys

logger = logging.getLogger("powertop_mcp")

_LINE_FORMAT = '%(asctime)s %(levelname)s %(message)s'


def debug_enabled() -> bool:
    return os.environ.get('DEBUG_VERBOSE') == '1'


def _attach_stdout_handler():
    # first debug line only; a host that already configured this logger keeps its handlers
    if logger.handlers:
        return
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(_LINE_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def dbg(msg: str):
    """Trace one parser or loader step when DEBUG_VERBOSE=1.

    Section switches, dropped rows and per-file load results go through
    here, so an export that parses to an empty record can be followed
    line by line.
    """
    if not debug_enabled():
        return
    _attach_stdout_handler()
    logger.info('[debug] %s', msg)
