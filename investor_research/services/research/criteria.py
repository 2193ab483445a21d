"""
Investor criteria document loading.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CRITERIA = "general venture capital investment criteria"


def load_criteria(path: str | Path) -> str:
    """
    Read the investor criteria markdown sent along with every research request.

    Falls back to a generic description when the file is missing or unreadable.
    """
    criteria_path = Path(path)

    if not criteria_path.exists():
        logger.warning(f"{criteria_path} not found. Proceeding without specific criteria.")
        return DEFAULT_CRITERIA

    try:
        criteria = criteria_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Error reading criteria file {criteria_path}: {e}")
        return DEFAULT_CRITERIA

    logger.info(f"Loaded investor criteria from {criteria_path}")
    return criteria
