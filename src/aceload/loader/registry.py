import logging
from typing import List, Type

from sqlalchemy.orm import sessionmaker

from aceload.loader.base import BaseLoadStep
from aceload.loader.counts import RecordCount
from aceload.timing import TimingLog

logger = logging.getLogger(__name__)


class LoadStepRegistry:
    """Registry to manage and execute the load steps of an iteration."""

    _steps: List[Type[BaseLoadStep]] = []

    @classmethod
    def register(cls, step_cls: Type[BaseLoadStep]):
        """Decorator to register a load step class."""
        if step_cls not in cls._steps:
            cls._steps.append(step_cls)
        return step_cls

    @classmethod
    def ordered(cls) -> List[Type[BaseLoadStep]]:
        return sorted(cls._steps, key=lambda x: x.priority)

    @classmethod
    def run_all(cls, session_factory: sessionmaker, counts: RecordCount, log: TimingLog):
        """Run all registered steps in priority order; each finishes before the next starts."""
        steps = cls.ordered()
        logger.debug(f"Running {len(steps)} load steps for {counts}")

        for step_cls in steps:

            def _run(child: TimingLog, step_cls=step_cls) -> None:
                step_cls(session_factory, counts, child).run()

            try:
                log.timed_v(step_cls.label or step_cls.__name__, _run)
            except Exception as e:
                logger.error(f"Load step {step_cls.__name__} failed: {e}")
                raise
