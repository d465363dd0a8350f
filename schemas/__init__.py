"""
Schedule input and result output schemas.

Usage:
    from schemas import ScheduleFile

    schedule = ScheduleFile.model_validate(json.loads(text))
    rows, calendar, project_start = schedule.to_domain()

    from schemas import CpmTaskResult, validate_dataframe
    errors = validate_dataframe(df, CpmTaskResult)
"""

from .schedule import (
    DependencyRecord,
    TaskRecord,
    CalendarExceptionRecord,
    CalendarRecord,
    ScheduleFile,
)
from .results import CpmTaskResult
from .validator import (
    find_type_mismatches,
    validate_dataframe,
    validated_df_to_csv,
    SchemaValidationError,
)

__all__ = [
    'DependencyRecord',
    'TaskRecord',
    'CalendarExceptionRecord',
    'CalendarRecord',
    'ScheduleFile',
    'CpmTaskResult',
    'find_type_mismatches',
    'validate_dataframe',
    'validated_df_to_csv',
    'SchemaValidationError',
]
