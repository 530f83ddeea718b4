"""Progress bar over consumed source lines."""
import logging
from typing import Optional

from tqdm import tqdm

logger = logging.getLogger(__name__)


class ProgressReporter:
    """tqdm bar ticked once per line read; a broken bar is disabled, never fatal to the run.

    enabled=None lets tqdm turn itself off when output is not a terminal.
    """

    def __init__(self, total: int, enabled: Optional[bool] = None) -> None:
        self.count = 0
        try:
            self._bar = tqdm(
                total=total,
                desc="processing",
                unit="line",
                disable=None if enabled is None else not enabled,
                bar_format="{desc} [{bar}] {percentage:3.0f}% ETA: {remaining}",
            )
        except Exception as e:
            logger.debug("progress bar unavailable: %s", e)
            self._bar = None

    def advance(self) -> None:
        self.count += 1
        if self._bar is None:
            return
        try:
            self._bar.update(1)
        except Exception as e:
            logger.debug("progress bar disabled after error: %s", e)
            self._bar = None

    def close(self) -> None:
        if self._bar is None:
            return
        try:
            self._bar.close()
        except Exception as e:
            logger.debug("progress bar close failed: %s", e)
        self._bar = None
