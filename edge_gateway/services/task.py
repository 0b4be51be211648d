"""Handle on an asynchronous vCloud task."""
from typing import Optional

from edge_gateway.schemas.task import Task

FINISHED_STATUSES = ("success", "error", "canceled", "aborted")
FAILED_STATUSES = ("error", "canceled", "aborted")


class AsyncTask:
    """
    A task started by a gateway action.

    The handle is bound to the HTTP client that started it so a task tracker
    can poll ``task.href`` with the same session. This package only fills in
    the first snapshot of the task document.
    """

    def __init__(self, http_client, task: Optional[Task] = None):
        self.http_client = http_client
        self.task = task or Task()

    @property
    def href(self) -> str:
        return self.task.href

    @property
    def status(self) -> str:
        return self.task.status

    def is_finished(self) -> bool:
        return self.task.status in FINISHED_STATUSES

    def has_failed(self) -> bool:
        return self.task.status in FAILED_STATUSES

    def __repr__(self) -> str:
        return f"AsyncTask(href={self.task.href!r}, status={self.task.status!r})"
