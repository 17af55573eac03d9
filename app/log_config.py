import os
import sys
import logging
from datetime import datetime


def setup_logging(log_name: str, level: str = "INFO", log_dir: str = "logs") -> str:
    """
    Log to stdout and to a timestamped file under ``log_dir``.

    Returns:
        Path of the log file
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    os.makedirs(log_dir, exist_ok=True)
    log_filename = os.path.join(log_dir, f"{log_name}_{timestamp}.log")

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_filename)
        ],
        force=True
    )
    # googleapiclient logs every discovery request at INFO
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    logging.getLogger(__name__).debug(f"Logging to file: {log_filename}")
    return log_filename
