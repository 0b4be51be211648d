"""Schemas for vCloud asynchronous task documents."""
from typing import Optional
from pydantic import BaseModel


class TaskError(BaseModel):
    """Error element attached to a failed task."""
    message: str = ""
    major_error_code: str = ""
    minor_error_code: str = ""


class Task(BaseModel):
    """Task document returned by every mutating gateway action."""
    href: str = ""
    type: str = ""
    id: str = ""
    name: str = ""
    operation_key: str = ""
    status: str = ""  # queued, preRunning, running, success, error, canceled, aborted
    operation: str = ""
    operation_name: str = ""
    start_time: str = ""
    end_time: str = ""
    expiry_time: str = ""
    description: str = ""
    error: Optional[TaskError] = None
    progress: Optional[int] = None
