"""
CPM result export schema.

Defines the columns of the flat per-task results table written by
scheduler.data_loader.export_results_csv.
"""

from typing import Optional
from pydantic import BaseModel, Field


class CpmTaskResult(BaseModel):
    """
    One scheduled row.

    File: user-chosen CSV (e.g. cpm_results.csv)
    Records: one per task row (separators excluded), input order.
    Purpose: Hand-off of calculated dates, floats and health to reporting.
    """

    task_id: str = Field(description="Task id")
    name: str = Field(description="Task name")
    parent_id: Optional[str] = Field(default=None, description="Parent task id")
    is_parent: bool = Field(description="True for summary rows rolled up from children")
    duration: int = Field(description="Work days (rolled up for parents)")
    constraint_type: str = Field(description="ASAP, SNET, SNLT, FNET, FNLT or MFO")
    constraint_date: Optional[str] = Field(default=None, description="Constraint date (YYYY-MM-DD)")
    start: Optional[str] = Field(default=None, description="Early start (YYYY-MM-DD)")
    end: Optional[str] = Field(default=None, description="Early finish (YYYY-MM-DD)")
    late_start: Optional[str] = Field(default=None, description="Late start (YYYY-MM-DD)")
    late_finish: Optional[str] = Field(default=None, description="Late finish (YYYY-MM-DD)")
    total_float: Optional[int] = Field(default=None, description="Total float (work days)")
    free_float: Optional[int] = Field(default=None, description="Free float (work days, leaves only)")
    is_critical: bool = Field(description="On the critical path")
    health: Optional[str] = Field(default=None, description="healthy, at-risk, critical-failure or blocked")
    health_summary: Optional[str] = Field(default=None, description="One-line health explanation")
