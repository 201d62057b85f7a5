"""
Aggregator Module
多数据源研究聚合
"""
from .data_aggregator import DataAggregator, normalize_counts

__all__ = ["DataAggregator", "normalize_counts"]
