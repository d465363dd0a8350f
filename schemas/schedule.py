"""
Schedule file schemas.

These schemas define the JSON structure of a schedule handed to the engine:
task rows, their dependencies, the work calendar and the project anchor.
Field names follow the camelCase used by schedule files; snake_case names
are accepted too.

Example:
    {
        "projectStart": "2024-01-01",
        "calendar": {"workingDays": [1, 2, 3, 4, 5],
                     "exceptions": {"2024-12-25": "Christmas",
                                    "2024-12-28": {"working": true, "label": "Make-up day"}}},
        "tasks": [
            {"id": "A", "name": "Design", "duration": 5},
            {"id": "B", "name": "Build", "duration": 3,
             "dependencies": [{"id": "A", "type": "FS", "lag": 0}]}
        ]
    }
"""

from datetime import date
from typing import Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from scheduler.config.settings import settings
from scheduler.cpm.calendar import CalendarException, WorkCalendar, to_date
from scheduler.cpm.exceptions import DateError
from scheduler.cpm.models import ConstraintType, Dependency, LinkType, Row, Separator, Task


class DependencyRecord(BaseModel):
    """Predecessor link of a task."""

    id: str = Field(min_length=1, description="Predecessor task id")
    type: LinkType = Field(default=LinkType.FS, description="Link type: FS, SS, FF or SF")
    lag: int = Field(default=0, description="Signed lag in work days")

    @field_validator('type', mode='before')
    @classmethod
    def _upper_type(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    def to_domain(self) -> Dependency:
        return Dependency(predecessor_id=self.id, link_type=self.type, lag=self.lag)


class TaskRecord(BaseModel):
    """
    One schedule row.

    rowType 'blank' marks a separator: a hierarchy-only spacer that is
    never scheduled.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1, description="Unique row id")
    name: str = Field(default='', description="Display name")
    parent_id: Optional[str] = Field(default=None, alias='parentId', description="Parent row id (null = root)")
    sort_key: str = Field(default='', alias='sortKey', description="Display order key")
    row_type: Literal['task', 'blank'] = Field(default='task', alias='rowType')
    duration: int = Field(default=1, ge=0, description="Work days (0 = milestone)")
    constraint_type: ConstraintType = Field(default=ConstraintType.ASAP, alias='constraintType')
    constraint_date: Optional[str] = Field(
        default=None, alias='constraintDate',
        description="Constraint date (YYYY-MM-DD); parsed by the engine",
    )
    dependencies: list[DependencyRecord] = Field(default_factory=list)
    baseline_start: Optional[date] = Field(default=None, alias='baselineStart')
    baseline_finish: Optional[date] = Field(default=None, alias='baselineFinish')

    @field_validator('constraint_type', mode='before')
    @classmethod
    def _normalize_constraint_type(cls, value):
        if value is None or value == '':
            return ConstraintType.ASAP
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator('constraint_date', mode='before')
    @classmethod
    def _blank_date_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, date):
            return value.isoformat()
        return value

    def to_domain(self) -> Row:
        if self.row_type == 'blank':
            return Separator(
                task_id=self.id, parent_id=self.parent_id, sort_key=self.sort_key, name=self.name,
            )
        return Task(
            task_id=self.id,
            name=self.name,
            duration=self.duration,
            parent_id=self.parent_id,
            sort_key=self.sort_key,
            dependencies=[dep.to_domain() for dep in self.dependencies],
            constraint_type=self.constraint_type,
            constraint_date=self.constraint_date,
            baseline_start=self.baseline_start,
            baseline_finish=self.baseline_finish,
        )


class CalendarExceptionRecord(BaseModel):
    """Structured calendar exception."""

    working: bool = Field(default=False, description="True = extra work day, False = holiday")
    label: str = Field(default='', validation_alias=AliasChoices('label', 'description'))


class CalendarRecord(BaseModel):
    """
    Work calendar.

    Exceptions map an ISO date to either a structured record or a legacy
    bare marker. A label string or true means a non-working day; a null,
    empty or false marker leaves the weekday rule in charge.
    """

    model_config = ConfigDict(populate_by_name=True)

    working_days: list[int] = Field(
        default_factory=lambda: list(settings.DEFAULT_WORKING_DAYS),
        alias='workingDays',
        description="Weekday indices, 0=Sunday ... 6=Saturday",
    )
    exceptions: dict[str, Union[CalendarExceptionRecord, str, bool, None]] = Field(default_factory=dict)

    @field_validator('working_days')
    @classmethod
    def _check_weekdays(cls, value):
        bad = [d for d in value if d < 0 or d > 6]
        if bad:
            raise ValueError(f"weekday indices must be 0..6, got {bad}")
        return value

    @field_validator('exceptions')
    @classmethod
    def _check_exception_dates(cls, value):
        bad = []
        for key in value:
            try:
                to_date(key)
            except DateError:
                bad.append(key)
        if bad:
            raise ValueError(f"exception keys must be YYYY-MM-DD dates, got {bad}")
        return value

    def to_domain(self) -> WorkCalendar:
        exceptions = {}
        for key, value in self.exceptions.items():
            if isinstance(value, CalendarExceptionRecord):
                exceptions[key] = CalendarException(working=value.working, label=value.label)
            elif CalendarException.is_marker(value):
                exceptions[key] = CalendarException.from_value(value)
        return WorkCalendar(working_days=frozenset(self.working_days), exceptions=exceptions)


class ScheduleFile(BaseModel):
    """Top-level schedule document."""

    model_config = ConfigDict(populate_by_name=True)

    project_start: Optional[str] = Field(default=None, alias='projectStart')
    calendar: CalendarRecord = Field(default_factory=CalendarRecord)
    tasks: list[TaskRecord] = Field(default_factory=list)

    def to_domain(self) -> tuple[list[Row], WorkCalendar, Optional[str]]:
        """Convert to (rows, calendar, project_start) for CPMEngine."""
        return [record.to_domain() for record in self.tasks], self.calendar.to_domain(), self.project_start
