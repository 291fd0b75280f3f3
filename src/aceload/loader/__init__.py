from .base import BaseLoadStep
from .registry import LoadStepRegistry

# Importing the steps module registers them; priority decides execution order.
from .steps import prepare_data
from .teardown import TeardownSummary, remove_data
from .counts import RecordCount, RecordType, iter_record_counts, record_count_for_iteration
from .driver import IterationDriver

__all__ = [
    "BaseLoadStep",
    "LoadStepRegistry",
    "prepare_data",
    "remove_data",
    "TeardownSummary",
    "RecordCount",
    "RecordType",
    "iter_record_counts",
    "record_count_for_iteration",
    "IterationDriver",
]
