"""
Application endpoints.
"""

from fastapi import APIRouter, Depends

from stagebook.api.deps import get_events, get_store
from stagebook.schemas.booking import ApplicationResponse, WithdrawRequest
from stagebook.services import booking_service
from stagebook.services.interfaces import EventPublisher, ProgrammingStore

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw(
    application_id: int,
    data: WithdrawRequest,
    store: ProgrammingStore = Depends(get_store),
    events: EventPublisher = Depends(get_events),
):
    """Withdraw a pending application; decided applications answer 409."""
    application = await booking_service.withdraw_application(
        store, application_id, data.artist_id, events=events
    )
    return ApplicationResponse.from_domain(application)
