"""
Booking endpoints: lookup, administrative cancellation and roadmaps.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from stagebook.api.deps import get_events, get_store
from stagebook.schemas.booking import BookingResponse, RoadmapResponse
from stagebook.services import booking_service, roadmap_service
from stagebook.services.interfaces import EventPublisher, ProgrammingStore

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("", response_model=list[BookingResponse])
async def list_artist_bookings(
    artist_id: str = Query(..., min_length=1, max_length=64),
    store: ProgrammingStore = Depends(get_store),
):
    """An artist's bookings, newest first."""
    bookings = await booking_service.list_artist_bookings(store, artist_id)
    return [BookingResponse.from_domain(b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: int, store: ProgrammingStore = Depends(get_store)):
    booking = await booking_service.get_booking_or_404(store, booking_id)
    return BookingResponse.from_domain(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    store: ProgrammingStore = Depends(get_store),
    events: EventPublisher = Depends(get_events),
):
    """Cancel a confirmed booking; its slot re-opens for applications."""
    booking = await booking_service.cancel_booking(store, booking_id, events=events)
    return BookingResponse.from_domain(booking)


@router.get("/{booking_id}/roadmap", response_model=RoadmapResponse)
async def get_roadmap(booking_id: int, store: ProgrammingStore = Depends(get_store)):
    roadmap = await roadmap_service.build_booking_roadmap(store, booking_id)
    return roadmap_service.roadmap_to_dict(roadmap)


@router.get("/{booking_id}/roadmap.txt", response_class=PlainTextResponse)
async def export_roadmap(booking_id: int, store: ProgrammingStore = Depends(get_store)):
    """Plain-text export; same content as the JSON roadmap."""
    roadmap = await roadmap_service.build_booking_roadmap(store, booking_id)
    return PlainTextResponse(
        "\n".join(roadmap_service.roadmap_to_lines(roadmap)) + "\n",
        headers={"Content-Disposition": f'inline; filename="roadmap-{booking_id}.txt"'},
    )
