from fastapi import Request

from .srs import MistakeScheduler


def get_scheduler(request: Request) -> MistakeScheduler:
    """Return the scheduler wired to this application instance."""
    return request.app.state.scheduler
