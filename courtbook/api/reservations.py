"""Reservation endpoints."""
import math
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.api.dependencies import get_current_user_id
from courtbook.core.database import get_db
from courtbook.core.errors import BookingError, booking_error_to_http
from courtbook.models.reservation import ReservationStatus
from courtbook.schemas.reservation import (
    PriceBreakdownSchema,
    ReservationCreate,
    ReservationCreated,
    ReservationInDB,
    ReservationPage,
)
from courtbook.services.reservation_service import reservation_service

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("", response_model=ReservationCreated, status_code=201)
async def create_reservation(
    request: ReservationCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Hold a slot pending payment.

    The hold blocks the interval until it is confirmed by a payment event,
    released, or its deadline passes. When the payment gateway is configured
    the response carries the checkout URL to send the user to.

    Args:
        request: Court, date and interval to reserve
        user_id: Authenticated user
        db: Database session

    Returns:
        The pending reservation and its price
    """
    try:
        hold = await reservation_service.create_reservation(
            db,
            request.court_id,
            request.date,
            request.start,
            request.end,
            user_id,
            participants=request.participants,
        )
        hold = await reservation_service.open_checkout(db, hold)
    except BookingError as e:
        raise booking_error_to_http(e)

    reservation = hold.reservation
    return ReservationCreated(
        reservation_id=reservation.id,
        status=reservation.status,
        hold_expires_at=reservation.hold_expires_at,
        price=reservation.price,
        price_breakdown=PriceBreakdownSchema(**hold.breakdown.as_dict()),
        payment_reference=reservation.payment_reference,
        checkout_url=hold.checkout.url if hold.checkout else None,
    )


@router.get("", response_model=ReservationPage)
async def list_my_reservations(
    status: Optional[ReservationStatus] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    List the current user's reservations, newest first.

    Args:
        status: Optional status filter
        page: Page number (1-based)
        page_size: Items per page
        user_id: Authenticated user
        db: Database session

    Returns:
        Page of reservations with pagination metadata
    """
    items, total = await reservation_service.list_for_user(
        db, user_id, status=status, page=page, page_size=page_size
    )
    total_pages = math.ceil(total / page_size) if total else 0
    return ReservationPage(
        items=items,
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


@router.get("/by-payment/{payment_reference}", response_model=ReservationInDB)
async def get_reservation_by_payment(
    payment_reference: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Look up the reservation behind a checkout session (payment-success page)."""
    reservation = await reservation_service.get_by_payment_reference(db, payment_reference)
    if not reservation or reservation.user_id != user_id:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


@router.get("/{reservation_id}", response_model=ReservationInDB)
async def get_reservation(
    reservation_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get one of the current user's reservations."""
    try:
        reservation = await reservation_service.get(db, reservation_id)
    except BookingError as e:
        raise booking_error_to_http(e)

    if reservation.user_id != user_id:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


@router.post("/{reservation_id}/release", response_model=ReservationInDB)
async def release_reservation(
    reservation_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Give up a pending hold before paying.

    Confirmed reservations cannot be released here.
    """
    try:
        reservation = await reservation_service.get(db, reservation_id)
        if reservation.user_id != user_id:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return await reservation_service.release(db, reservation_id, "user_abandoned")
    except BookingError as e:
        raise booking_error_to_http(e)
