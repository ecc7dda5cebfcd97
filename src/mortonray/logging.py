import logging

from rich.logging import RichHandler


def setup_log(level: int = logging.INFO) -> None:
    """Send the package's log records to a rich console handler."""
    log = logging.getLogger("mortonray")
    if not any(isinstance(h, RichHandler) for h in log.handlers):
        ch = RichHandler(level=logging.NOTSET, show_path=False)
        log.addHandler(ch)
    log.setLevel(level)
