"""
Payment and subscription API routes
"""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from app.api.deps import get_plan_catalog, get_subscription_ledger
from app.core.auth import get_current_user
from app.core.plans import PlanCatalog
from app.models.subscription import (
    ConsumeInterviewResponse,
    CreateOrderRequest,
    InterviewStatusResponse,
    OrderIntentResponse,
    PaymentHistoryResponse,
    RedemptionResponse,
    VerifyPaymentRequest,
)
from app.models.user import UserResponse
from app.services.subscription_service import SubscriptionLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payments"])


def _internal_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": message},
    )


@router.get("/plans")
def list_plans(catalog: PlanCatalog = Depends(get_plan_catalog)):
    """Full plan catalog keyed by plan id"""
    return catalog.as_dict()


@router.post("/create-order", response_model=OrderIntentResponse)
def create_order(
    request: CreateOrderRequest,
    current_user: UserResponse = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_subscription_ledger),
):
    """
    Price a plan purchase (upgrade credit and promo code applied) and open a Razorpay order.

    Returns:
        OrderIntentResponse with the gateway order id and the pricing breakdown
    """
    logger.info(f"Create order request from user {current_user.id}: plan={request.planId} promo={request.promoCode}")
    try:
        return ledger.create_order(current_user.id, request.planId, request.promoCode)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating order for user {current_user.id}: {e}", exc_info=True)
        raise _internal_error("Order creation failed")


@router.post("/verify", response_model=RedemptionResponse)
def verify_payment(
    request: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    current_user: UserResponse = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_subscription_ledger),
):
    """
    Verify the Razorpay checkout signature and activate the purchased plan.
    Safe to call repeatedly for the same order.
    """
    try:
        return ledger.verify_and_redeem(
            current_user.id,
            request.razorpay_order_id,
            request.razorpay_payment_id,
            request.razorpay_signature,
            background_tasks=background_tasks,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error verifying payment {request.razorpay_order_id}: {e}", exc_info=True)
        raise _internal_error("Payment verification failed")


@router.post("/use-interview", response_model=ConsumeInterviewResponse)
@router.post("/consume-interview", response_model=ConsumeInterviewResponse)
def consume_interview(
    background_tasks: BackgroundTasks,
    current_user: UserResponse = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_subscription_ledger),
):
    """Consume one interview credit"""
    try:
        return ledger.consume_interview_credit(current_user.id, background_tasks=background_tasks)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Consume interview error for user {current_user.id}: {e}", exc_info=True)
        raise _internal_error("Failed to consume interview credit")


@router.get("/interview-status", response_model=InterviewStatusResponse)
def interview_status(
    current_user: UserResponse = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_subscription_ledger),
):
    return ledger.interview_status(current_user.id)


@router.get("/history", response_model=PaymentHistoryResponse)
def payment_history(
    current_user: UserResponse = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_subscription_ledger),
):
    """Successful payments, newest first"""
    try:
        return ledger.payment_history(current_user.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching payment history for user {current_user.id}: {e}", exc_info=True)
        raise _internal_error("Failed to fetch payment history")
