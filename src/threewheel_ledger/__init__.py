"""Inventory and sales ledger for a three-wheeler shop.

Importing the package sets up the shared ``log`` used by every layer. Log
files rotate under ``.logs/`` in a source checkout, or under
``~/.threewheel_ledger/logs`` for an installed copy; the
``THREEWHEEL_LEDGER_LOG_DIR`` environment variable overrides both.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, Optional


LOG_DIR_ENV = "THREEWHEEL_LEDGER_LOG_DIR"
LOG_FILE_NAME = "threewheel_ledger.log"
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_log_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the directory that receives the rotating ledger log."""

    environ = os.environ if environ is None else environ
    override = environ.get(LOG_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()

    checkout_root = Path(__file__).resolve().parents[2]
    if (checkout_root / "pyproject.toml").is_file():
        return checkout_root / ".logs"
    return Path.home() / ".threewheel_ledger" / "logs"


def configure_logging(name: str = __name__, log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach a rotating file handler and a stderr handler to ``name``.

    Calling it again for a logger that already has handlers is a no-op. A log
    directory that cannot be created only costs the file handler.
    """

    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    log_file = (log_dir if log_dir is not None else resolve_log_dir()) / LOG_FILE_NAME
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
    except OSError as exc:
        print(f"Warning: ledger log disabled, cannot write '{log_file}': {exc}", file=sys.stderr)
    else:
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


log = configure_logging()
log.debug("Ledger logging ready")
