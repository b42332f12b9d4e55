# Paystack Payment Gateway
import os
import hmac
import hashlib
import requests
from typing import Optional, Dict, Any, NamedTuple
import logging
import enum

from config.app_config import DEFAULT_CURRENCY
from services.errors import PaymentGatewayError

logger = logging.getLogger(__name__)


class ChargeOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


# Paystack transaction statuses that end a charge without capturing funds.
# Anything else (ongoing, pending, queued, abandoned, ...) may still settle.
FAILED_GATEWAY_STATUSES = frozenset({"failed", "reversed"})


def charge_outcome(gateway_status: str) -> ChargeOutcome:
    if gateway_status == "success":
        return ChargeOutcome.SUCCESS
    if gateway_status in FAILED_GATEWAY_STATUSES:
        return ChargeOutcome.FAILED
    return ChargeOutcome.PENDING


class ChargeVerification(NamedTuple):
    outcome: ChargeOutcome
    amount_captured: int
    gateway_status: str = ""

    @property
    def settled(self) -> bool:
        return self.outcome != ChargeOutcome.PENDING

    @property
    def success(self) -> bool:
        return self.outcome == ChargeOutcome.SUCCESS


class PaymentGateway:
    """
    Contract the escrow engine depends on.

    initialize_charge(amount, metadata) -> reference
    verify_charge(reference) -> ChargeVerification
    """

    def initialize_charge(self, amount: int, metadata: Dict[str, Any]) -> str:
        raise NotImplementedError

    def verify_charge(self, reference: str) -> ChargeVerification:
        raise NotImplementedError


class PaystackConfig:
    """Paystack configuration"""
    BASE_URL = "https://api.paystack.co"
    SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
    CALLBACK_URL = os.getenv("PAYSTACK_CALLBACK_URL", "")
    CURRENCY = DEFAULT_CURRENCY
    TIMEOUT_SECONDS = 15


class PaystackService(PaymentGateway):
    """Service for handling Paystack payments"""

    def __init__(self, secret_key: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = PaystackConfig.BASE_URL
        self.secret_key = secret_key or PaystackConfig.SECRET_KEY
        self.http = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json"
        }

    def _make_request(self, method: str, endpoint: str, data: Optional[Dict] = None) -> Dict[str, Any]:
        """Make a request to Paystack API"""
        url = f"{self.base_url}{endpoint}"
        try:
            if method == "GET":
                response = self.http.get(url, headers=self.headers, timeout=PaystackConfig.TIMEOUT_SECONDS)
            elif method == "POST":
                response = self.http.post(url, headers=self.headers, json=data, timeout=PaystackConfig.TIMEOUT_SECONDS)
            else:
                raise ValueError(f"Unsupported method: {method}")

            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Paystack API error: {e}")
            raise PaymentGatewayError(f"Payment service error: {str(e)}")

    def initialize_transaction(
        self,
        email: str,
        amount: int,
        callback_url: Optional[str] = None,
        reference: Optional[str] = None,
        metadata: Optional[Dict] = None
    ) -> Dict[str, Any]:
        """
        Initialize a Paystack transaction

        Args:
            email: Customer's email
            amount: Amount in the smallest currency unit (kobo)
            callback_url: URL to redirect after payment
            reference: Optional unique reference
            metadata: Additional transaction metadata

        Returns:
            Transaction initialization response with authorization_url and reference
        """
        data = {
            "email": email,
            "amount": amount,
            "currency": PaystackConfig.CURRENCY,
            "metadata": metadata or {}
        }
        if callback_url or PaystackConfig.CALLBACK_URL:
            data["callback_url"] = callback_url or PaystackConfig.CALLBACK_URL
        if reference:
            data["reference"] = reference

        return self._make_request("POST", "/transaction/initialize", data)

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """
        Verify a Paystack transaction

        Args:
            reference: Transaction reference

        Returns:
            Transaction verification response
        """
        return self._make_request("GET", f"/transaction/verify/{reference}")

    # PaymentGateway contract

    def initialize_charge(self, amount: int, metadata: Dict[str, Any]) -> str:
        email = metadata.get("email")
        if not email:
            raise PaymentGatewayError("Payer email is required to initialize a charge")

        result = self.initialize_transaction(email=email, amount=amount, metadata=metadata)
        reference = (result.get("data") or {}).get("reference")
        if not result.get("status") or not reference:
            raise PaymentGatewayError(result.get("message") or "Paystack did not return a reference")
        return reference

    def verify_charge(self, reference: str) -> ChargeVerification:
        result = self.verify_transaction(reference)
        data = result.get("data") or {}
        gateway_status = data.get("status", "") if result.get("status") else ""
        return ChargeVerification(
            outcome=charge_outcome(gateway_status),
            amount_captured=int(data.get("amount") or 0),
            gateway_status=gateway_status,
        )


# Webhook handler for Paystack events
class PaystackWebhookHandler:
    """Handle Paystack webhook events"""

    SUPPORTED_EVENTS = [
        "charge.success",
        "charge.failed",
    ]

    @staticmethod
    def verify_webhook(payload: bytes, signature: str, secret_key: str) -> bool:
        """
        Verify webhook signature

        Args:
            payload: Raw request body
            signature: X-Paystack-Signature header value
            secret_key: Paystack secret key

        Returns:
            True if signature is valid
        """
        if not signature or not secret_key:
            return False

        computed_signature = hmac.new(
            secret_key.encode('utf-8'),
            payload,
            hashlib.sha512
        ).hexdigest()

        return hmac.compare_digest(computed_signature, signature)

    @staticmethod
    def handle_charge_success(data: Dict[str, Any]) -> Dict[str, Any]:
        """Handle successful charge webhook"""
        return {
            "event": "charge.success",
            "reference": data.get("reference"),
            "success": True,
            "amount": int(data.get("amount") or 0),
            "metadata": data.get("metadata") or {},
            "paid_at": data.get("paid_at"),
        }

    @staticmethod
    def handle_charge_failed(data: Dict[str, Any]) -> Dict[str, Any]:
        """Handle failed charge webhook"""
        return {
            "event": "charge.failed",
            "reference": data.get("reference"),
            "success": False,
            "amount": int(data.get("amount") or 0),
            "reason": data.get("gateway_response") or "Payment failed",
        }

    @classmethod
    def parse(cls, event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Normalize a webhook body. Returns None for events we do not act on."""
        name = event.get("event")
        data = event.get("data") or {}
        if name == "charge.success":
            return cls.handle_charge_success(data)
        if name == "charge.failed":
            return cls.handle_charge_failed(data)
        return None


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency. Tests override it with a fake gateway."""
    return PaystackService()
