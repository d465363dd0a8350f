"""
Analyses over finished CPM results.

- Critical path: critical/near-critical tasks and float distribution
- Variance: scheduled dates against baselines
"""

from .critical_path import analyze_critical_path, print_critical_path_report
from .variance import VarianceResult, calculate_variance, schedule_variance

__all__ = [
    'analyze_critical_path',
    'print_critical_path_report',
    'VarianceResult',
    'calculate_variance',
    'schedule_variance',
]
