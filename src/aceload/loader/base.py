from abc import ABC, abstractmethod
import logging

from sqlalchemy.orm import sessionmaker

from aceload.loader.counts import RecordCount
from aceload.timing import TimingLog

logger = logging.getLogger(__name__)


class BaseLoadStep(ABC):
    """
    Abstract base class for one phase of an iteration's load.

    Attributes:
        priority (int): Execution order (lower runs first). A step may only
                        reference records created by lower-priority steps.
        label (str): Message used when timing the step.
    """
    priority: int = 100
    label: str = ""

    def __init__(self, session_factory: sessionmaker, counts: RecordCount, log: TimingLog):
        self.session_factory = session_factory
        self.counts = counts
        self.log = log

    @abstractmethod
    def run(self):
        """Execute the step, one transaction per record."""
        pass

    def timed(self, msg: str, fn):
        """Time a single record write in verbose mode."""
        return self.log.timed_v(msg, lambda _: fn())
