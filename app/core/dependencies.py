"""
FastAPI Dependencies for the Walk Check-in service.

Reusable dependencies for authentication and for wiring the check-in core
to the request's database session.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, SystemClock
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.models.admin import RouteAdmin
from app.models.participant import Participant
from app.services.access_control import RouteAccessPolicy
from app.services.auth_service import AuthError, TokenRole, decode_token
from app.services.checkin_engine import CheckInEngine
from app.services.matching_registry import MatchingRegistry
from app.services.membership_service import MembershipService
from app.services.notification_manager import NotificationManager, notification_manager
from app.services.route_topology import RouteTopology, get_route_topology
from app.services.timeout_scanner import TimeoutScanner

# Security scheme for API documentation
security = HTTPBearer(auto_error=False)

_system_clock = SystemClock()


DbSession = Annotated[AsyncSession, Depends(get_db)]
Credentials = Annotated[HTTPAuthorizationCredentials | None, Depends(security)]


def _bearer_payload(authorization: HTTPAuthorizationCredentials | None, role: TokenRole) -> dict:
    if not authorization or not authorization.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_token(authorization.credentials, expected_role=role)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


async def get_current_admin(session: DbSession, authorization: Credentials) -> RouteAdmin:
    """
    Get the route admin behind the bearer token.

    Raises:
        HTTPException: If authentication fails
    """
    payload = _bearer_payload(authorization, TokenRole.ADMIN)
    try:
        admin_id = int(payload["sub"])
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    admin = await session.get(RouteAdmin, admin_id)
    if admin is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found")
    return admin


CurrentAdmin = Annotated[RouteAdmin, Depends(get_current_admin)]


async def get_current_participant(session: DbSession, authorization: Credentials) -> Participant:
    """Get the participant behind the bearer token."""
    payload = _bearer_payload(authorization, TokenRole.PARTICIPANT)
    participant = await session.get(Participant, payload["sub"])
    if participant is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Participant not found")
    return participant


CurrentParticipant = Annotated[Participant, Depends(get_current_participant)]


# ============== Core wiring ==============

def get_clock() -> Clock:
    return _system_clock


def get_topology() -> RouteTopology:
    return get_route_topology()


def get_matching_registry() -> MatchingRegistry:
    return MatchingRegistry()


def get_notification_manager() -> NotificationManager:
    return notification_manager


def get_access_policy() -> RouteAccessPolicy:
    return RouteAccessPolicy()


Topology = Annotated[RouteTopology, Depends(get_topology)]
AccessPolicy = Annotated[RouteAccessPolicy, Depends(get_access_policy)]
Notifier = Annotated[NotificationManager, Depends(get_notification_manager)]


def get_checkin_engine(
    session: DbSession,
    topology: Topology,
    access: AccessPolicy,
    clock: Annotated[Clock, Depends(get_clock)],
) -> CheckInEngine:
    return CheckInEngine(session, topology, access, clock)


def get_timeout_scanner(
    session: DbSession,
    topology: Topology,
    clock: Annotated[Clock, Depends(get_clock)],
) -> TimeoutScanner:
    return TimeoutScanner(session, topology, clock)


def get_membership_service(
    session: DbSession,
    topology: Topology,
    registry: Annotated[MatchingRegistry, Depends(get_matching_registry)],
    notifier: Notifier,
    settings: Annotated[Settings, Depends(get_settings)],
) -> MembershipService:
    return MembershipService(
        session,
        topology,
        registry,
        notifier,
        enforce_min_size_before_submit=settings.enforce_min_size_before_submit,
    )


CheckInEngineDep = Annotated[CheckInEngine, Depends(get_checkin_engine)]
TimeoutScannerDep = Annotated[TimeoutScanner, Depends(get_timeout_scanner)]
MembershipServiceDep = Annotated[MembershipService, Depends(get_membership_service)]
