"""
Razorpay payment gateway wrapper - order creation and signature verification
"""
import hashlib
import hmac
import logging
import time
from typing import Any, Dict, Optional

import razorpay
import requests
from fastapi import HTTPException, status

from app.core.config import settings

logger = logging.getLogger(__name__)


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """HMAC-SHA256 of "<order_id>|<payment_id>", hex encoded, as Razorpay signs checkouts"""
    message = f"{order_id}|{payment_id}"
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


class RazorpayGateway:
    """
    Thin wrapper around the Razorpay client.

    Args:
        key_id: Razorpay key id (also handed to the checkout widget)
        key_secret: Razorpay key secret, used for signature verification
        currency: ISO currency of created orders
        timeout: Seconds before an order-creation call is abandoned
        client: Pre-built razorpay.Client (tests pass a fake)
    """

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        currency: str = "INR",
        timeout: float = 10.0,
        client: Any = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.currency = currency
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.key_id or not self.key_secret:
                logger.error("Razorpay credentials not configured")
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail={"message": "Payment gateway not configured"},
                )
            self._client = razorpay.Client(auth=(self.key_id, self.key_secret))
        return self._client

    def create_order(self, amount: int, receipt: Optional[str] = None, notes: Optional[Dict[str, str]] = None) -> dict:
        """
        Create a gateway order

        Args:
            amount: Amount in paise
            receipt: Receipt id (defaults to receipt_<epoch ms>)
            notes: Free-form metadata stored on the order

        Returns:
            Razorpay order dict (contains "id", "amount", "currency")

        Raises:
            HTTPException: 504 (retryable) on timeout, 502 on any other gateway failure
        """
        payload = {
            "amount": amount,
            "currency": self.currency,
            "receipt": receipt or f"receipt_{int(time.time() * 1000)}",
            "notes": notes or {},
        }
        try:
            order = self.client.order.create(data=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Razorpay order creation timed out after {self.timeout}s")
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail={"message": "Payment gateway timed out. Please try again.", "retryable": True},
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Razorpay order creation failed: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"message": "Unable to create payment order right now."},
            )

        if not isinstance(order, dict) or not order.get("id"):
            logger.error(f"Unexpected Razorpay order response: {order!r}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"message": "Invalid response received from payment gateway."},
            )

        logger.info(f"Created Razorpay order {order['id']} for {amount} paise")
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Constant-time comparison of the checkout signature against our own HMAC"""
        if not self.key_secret:
            logger.error("Cannot verify payment signature: RAZORPAY_KEY_SECRET not configured")
            return False
        expected = compute_signature(self.key_secret, order_id, payment_id)
        return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))


def gateway_from_settings() -> RazorpayGateway:
    return RazorpayGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        currency=settings.RAZORPAY_CURRENCY,
        timeout=settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
    )
