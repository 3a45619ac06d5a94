"""
Promo code API routes
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_plan_catalog, get_promo_evaluator
from app.core.auth import get_current_admin, get_current_user
from app.core.plans import PlanCatalog
from app.models.promo_code import (
    CreatePromoRequest,
    PromoCode,
    PromoStatsResponse,
    ValidatePromoRequest,
    ValidatePromoResponse,
)
from app.models.user import UserResponse
from app.services.promo_service import (
    PromoEvaluator,
    create_promo_code,
    deactivate_promo_code,
    get_promo_stats,
    list_active_promo_codes,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/promo", tags=["promo codes"])


@router.post("/validate", response_model=ValidatePromoResponse)
def validate_promo_code(
    request: ValidatePromoRequest,
    current_user: UserResponse = Depends(get_current_user),
    evaluator: PromoEvaluator = Depends(get_promo_evaluator),
):
    """Preview a promo code discount for a plan. Does not consume the code."""
    try:
        return evaluator.preview(request.code, current_user.id, request.planId)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Validate promo code error: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to validate promo code"},
        )


@router.get("/all")
def list_promo_codes(admin: UserResponse = Depends(get_current_admin)) -> List[dict]:
    """Active promo codes, newest first, without redemption details (admin)"""
    return list_active_promo_codes()


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_promo(
    request: CreatePromoRequest,
    admin: UserResponse = Depends(get_current_admin),
    catalog: PlanCatalog = Depends(get_plan_catalog),
):
    """Create a promo code (admin)"""
    promo: PromoCode = create_promo_code(request, catalog)
    logger.info(f"Admin {admin.email} created promo code {promo.code}")
    return {"message": "Promo code created successfully", "promoCode": promo}


@router.patch("/deactivate/{code}")
def deactivate_promo(code: str, admin: UserResponse = Depends(get_current_admin)):
    """Deactivate a promo code (admin)"""
    promo = deactivate_promo_code(code)
    logger.info(f"Admin {admin.email} deactivated promo code {promo.code}")
    return {"message": "Promo code deactivated successfully", "promoCode": promo}


@router.get("/stats/{code}", response_model=PromoStatsResponse)
def promo_stats(code: str, admin: UserResponse = Depends(get_current_admin)):
    """Usage statistics of a promo code, including who redeemed it (admin)"""
    return get_promo_stats(code)
