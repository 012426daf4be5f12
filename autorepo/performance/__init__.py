"""Query performance analysis."""

from .analyzer import (
    LARGE_RESULT_SET,
    MISSING_INDEX,
    N_PLUS_ONE,
    SLOW_QUERY,
    AnalyzerOptions,
    PerformanceWarning,
    QueryAnalyzer,
    QueryMetrics,
    extract_operation,
    extract_table,
    normalize_query,
)

__all__ = [
    "LARGE_RESULT_SET",
    "MISSING_INDEX",
    "N_PLUS_ONE",
    "SLOW_QUERY",
    "AnalyzerOptions",
    "PerformanceWarning",
    "QueryAnalyzer",
    "QueryMetrics",
    "extract_operation",
    "extract_table",
    "normalize_query",
]
