"""Coupon administration endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from course_checkout.core.auth import CurrentUser, require_admin
from course_checkout.core.database import get_db
from course_checkout.models.coupon import Coupon
from course_checkout.repositories.coupon_repository import CouponRepository
from course_checkout.repositories.course_repository import CourseRepository
from course_checkout.schemas.coupon import CouponCreate, CouponResponse, CouponUpdate

router = APIRouter()


def _check_course_exists(db: Session, course_id: UUID | None) -> None:
    if course_id is not None and CourseRepository(db).get_by_id(course_id) is None:
        raise HTTPException(status_code=422, detail="Restricted course does not exist")


@router.post(
    "/",
    response_model=CouponResponse,
    status_code=201,
    summary="Create coupon",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        409: {"description": "Coupon with this code already exists"},
        422: {"description": "Validation error"},
    },
)
async def create_coupon(
    data: CouponCreate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> Coupon:
    """Create a new coupon. The code is stored upper-cased."""
    repo = CouponRepository(db)
    if repo.get_by_code(data.code):
        raise HTTPException(status_code=409, detail="Coupon with this code already exists")
    _check_course_exists(db, data.restricted_to_course_id)
    return repo.create(data, created_by=admin.email)


@router.get(
    "/",
    response_model=list[CouponResponse],
    summary="List coupons",
    responses={401: {"description": "Unauthorized"}, 403: {"description": "Forbidden"}},
)
async def list_coupons(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    is_active: bool | None = None,
    include_expired: bool = True,
    course_id: UUID | None = None,
    search: str | None = Query(default=None, max_length=64),
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> list[Coupon]:
    """List coupons with optional filters."""
    repo = CouponRepository(db)
    response.headers["X-Total-Count"] = str(
        repo.count(
            is_active=is_active,
            include_expired=include_expired,
            course_id=course_id,
            search=search,
        )
    )
    return repo.get_all(
        skip=skip,
        limit=limit,
        is_active=is_active,
        include_expired=include_expired,
        course_id=course_id,
        search=search,
    )


@router.get(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Get coupon",
    responses={404: {"description": "Coupon not found"}},
)
async def get_coupon(
    coupon_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Coupon:
    coupon = CouponRepository(db).get_by_id(coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.put(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Update coupon",
    responses={
        404: {"description": "Coupon not found"},
        422: {"description": "Validation error"},
    },
)
async def update_coupon(
    coupon_id: UUID,
    data: CouponUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Coupon:
    """Update a coupon. Orders keep the terms they were placed with."""
    repo = CouponRepository(db)
    coupon = repo.get_by_id(coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    if data.max_uses is not None and data.max_uses < coupon.current_uses:
        raise HTTPException(
            status_code=422, detail="max_uses cannot be lower than the uses already consumed"
        )
    _check_course_exists(db, data.restricted_to_course_id)
    return repo.update(coupon_id, data)  # type: ignore[return-value]


@router.post(
    "/{coupon_id}/deactivate",
    response_model=CouponResponse,
    summary="Deactivate coupon",
    responses={404: {"description": "Coupon not found"}},
)
async def deactivate_coupon(
    coupon_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Coupon:
    coupon = CouponRepository(db).set_active(coupon_id, False)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.post(
    "/{coupon_id}/activate",
    response_model=CouponResponse,
    summary="Reactivate coupon",
    responses={404: {"description": "Coupon not found"}},
)
async def activate_coupon(
    coupon_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Coupon:
    coupon = CouponRepository(db).set_active(coupon_id, True)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.delete(
    "/{coupon_id}",
    status_code=204,
    summary="Delete coupon",
    responses={
        404: {"description": "Coupon not found"},
        409: {"description": "Coupon has been used in orders"},
    },
)
async def delete_coupon(
    coupon_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> None:
    """Delete a coupon that no order references."""
    try:
        deleted = CouponRepository(db).delete(coupon_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    if not deleted:
        raise HTTPException(status_code=404, detail="Coupon not found")
