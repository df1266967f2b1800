"""
Domain errors for the check-in core.

Every error carries a human readable message and the HTTP status the API
layer answers with, so routers never translate errors one by one.
"""

from fastapi import status


class WalkError(Exception):
    """Base class for all check-in domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# ============ Lookup ============

class NotFound(WalkError):
    """Entity absent from the store."""

    status_code = status.HTTP_404_NOT_FOUND


class ParticipantNotFound(NotFound):
    def __init__(self, participant_id: str):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} not found")


class TeamNotFound(NotFound):
    def __init__(self, team_id: int | None):
        self.team_id = team_id
        super().__init__(f"Team {team_id} not found")


class UnknownRoute(NotFound):
    def __init__(self, route_id: int):
        self.route_id = route_id
        super().__init__(f"Route {route_id} is not configured")


# ============ Check-in ============

class AlreadyFinished(WalkError):
    """Participant already completed the whole route."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, participant_id: str):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} has already finished the walk")


class InvalidTransition(WalkError):
    """Requested status is not reachable from the current one."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class Unauthorized(WalkError):
    """Actor has no authority over the target's route."""

    status_code = status.HTTP_403_FORBIDDEN


# ============ Membership ============

class NotCaptain(WalkError):
    status_code = status.HTTP_403_FORBIDDEN


class BelowMinimum(WalkError):
    status_code = status.HTTP_409_CONFLICT


class CrossTeamRemoval(WalkError):
    status_code = status.HTTP_403_FORBIDDEN


# ============ Store ============

class StoreError(WalkError):
    """Underlying transactional failure; the unit of work was rolled back."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
