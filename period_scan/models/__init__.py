from .partition import Partition, partition_for_rank, plan_partitions
from .results import PartialSums, PerformanceReport, ResultRow, TotalSums

__all__ = [
    "Partition",
    "partition_for_rank",
    "plan_partitions",
    "PartialSums",
    "PerformanceReport",
    "ResultRow",
    "TotalSums",
]
