import time
import logging
from dataclasses import dataclass, field
from decimal import Decimal

import httpx

from app.core.config import Settings, get_settings
from app.core.logging import mask_phone


settings = get_settings()
logger = logging.getLogger(__name__)


OUTCOME_SUCCESS = "success"
OUTCOME_PENDING = "pending"
OUTCOME_FAILED = "failed"

_SUCCESS_CODES = {"00", "0"}
_PENDING_CODES = {"09"}

_SUCCESS_STATUS = {"success", "successful", "delivered", "completed", "ok", "done", "valid"}
_PENDING_STATUS = {"pending", "processing", "queued", "in_progress", "accepted", "submitted"}
_FAILURE_STATUS = {"failed", "fail", "error", "rejected", "declined", "cancelled", "canceled", "invalid"}

_CODE_KEYS = ("status-code", "status_code", "statusCode", "code")
_STATUS_KEYS = ("status", "state", "delivery_status")
_REFERENCE_KEYS = ("transactionId", "transaction_id", "trxn", "local-trxn-code", "reference", "transaction_reference")
_BALANCE_KEYS = ("balance_after", "balance", "bal_after")


def _first_present(payload: dict, keys: tuple[str, ...]):
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def _normalize_provider_text(value) -> str:
    return str(value if value is not None else "").strip().lower()


def _provider_bool(value) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    raw = _normalize_provider_text(value)
    if raw in {"true", "1", "yes", "ok", "success", "successful"}:
        return True
    if raw in {"false", "0", "no", "failed", "fail", "error", "unsuccessful"}:
        return False
    return None


def _nested_status(payload: dict):
    response = payload.get("response")
    if not isinstance(response, dict):
        return None
    data = response.get("data")
    if isinstance(data, dict):
        return data.get("transaction_status") or data.get("status")
    return None


def _provider_message(payload: dict) -> str:
    for key in ("message", "detail", "error", "status-message"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()[:255]
    return ""


def classify_provider_outcome(payload: dict) -> tuple[str, str]:
    """
    Reduce a provider body to success, pending or failed plus a message.

    Handles the simple ``{success, message, transactionId}`` shape and the
    One4All shape (``status-code`` "00" delivered, "09" pending). A pending
    signal wins over a wrapper ``success: true``; anything unrecognised is a
    failure.
    """
    message = _provider_message(payload)
    code = _normalize_provider_text(_first_present(payload, _CODE_KEYS))
    status_text = _normalize_provider_text(_nested_status(payload) or _first_present(payload, _STATUS_KEYS))
    success_flag = _provider_bool(payload.get("success"))
    pending_flag = _provider_bool(payload.get("pending"))

    if code in _PENDING_CODES or status_text in _PENDING_STATUS or pending_flag is True:
        return OUTCOME_PENDING, message or "Top-up accepted and pending delivery."
    if code:
        if code in _SUCCESS_CODES:
            return OUTCOME_SUCCESS, message
        return OUTCOME_FAILED, message or f"Provider returned status code {code}."
    if status_text in _FAILURE_STATUS or success_flag is False:
        return OUTCOME_FAILED, message or "Airtime provider rejected the top-up."
    if status_text in _SUCCESS_STATUS or success_flag is True:
        return OUTCOME_SUCCESS, message
    return OUTCOME_FAILED, message or "Unrecognised response from airtime provider."


def extract_reference(payload: dict) -> str | None:
    value = _first_present(payload, _REFERENCE_KEYS)
    return str(value)[:100] if value is not None else None


def extract_balance(payload: dict) -> str | None:
    value = _first_present(payload, _BALANCE_KEYS)
    return str(value) if value is not None else None


@dataclass
class ProviderResult:
    success: bool
    status: str
    message: str
    transaction_id: str | None = None
    balance: str | None = None
    http_status: int = 200
    raw: dict = field(default_factory=dict)

    @property
    def pending(self) -> bool:
        return self.status == OUTCOME_PENDING


class One4AllApiError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, raw: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.raw = raw


def _failure_http_status(exc: One4AllApiError) -> int:
    if exc.status_code is None:
        return 502
    if exc.status_code == 404:
        return 404
    if exc.status_code >= 500:
        return 502
    return 400


class One4AllClient:
    def __init__(self, config: Settings | None = None, *, transport: httpx.BaseTransport | None = None):
        config = config or settings
        self.test_mode = config.airtime_test_mode
        self.base_url = str(config.one4all_base_url or "").strip().rstrip("/")
        path = str(config.one4all_airtime_path or "/airtime").strip()
        self.airtime_path = path if path.startswith("/") else f"/{path}"
        self.api_key = config.one4all_api_key
        self.api_secret = config.one4all_api_secret
        self.retailer = config.one4all_retailer
        self.amount = Decimal(str(config.airtime_amount))
        self.timeout = float(config.one4all_timeout_seconds)
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["ApiKey"] = self.api_key
        if self.api_secret:
            headers["ApiSecret"] = self.api_secret
        return headers

    def _request(self, params: dict) -> dict:
        url = f"{self.base_url}{self.airtime_path}"
        start = time.time()
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(url, params=params, headers=self._headers())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("One4All GET %s unreachable: %s", self.airtime_path, exc)
            raise One4AllApiError("Unable to reach airtime provider.", raw=str(exc)) from exc

        duration_ms = round((time.time() - start) * 1000, 2)
        logger.info("One4All GET %s status=%s duration=%sms", self.airtime_path, response.status_code, duration_ms)
        if not response.is_success:
            text = (response.text or "").strip()
            raise One4AllApiError(
                f"Airtime provider returned HTTP {response.status_code}.",
                status_code=response.status_code,
                raw=text[:300],
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise One4AllApiError("Airtime provider returned an invalid response.", raw=response.text[:300]) from exc
        if not isinstance(data, dict):
            raise One4AllApiError("Airtime provider returned an invalid response.", raw=str(data)[:300])
        return data

    def send_airtime(self, recipient: str) -> ProviderResult:
        """Top up ``recipient`` with the configured amount. Never raises."""
        if self.test_mode:
            # Explicit test mode never hits the external provider.
            if recipient.startswith("0000"):
                return ProviderResult(
                    False,
                    OUTCOME_FAILED,
                    "Test mode: simulated provider failure.",
                    http_status=400,
                )
            return ProviderResult(
                True,
                OUTCOME_SUCCESS,
                "Test mode: simulated delivery.",
                transaction_id=f"SIM-{recipient}",
            )

        params = {
            "retailer": self.retailer,
            "recipient": recipient,
            "amount": f"{self.amount:.2f}",
        }
        try:
            payload = self._request(params)
        except One4AllApiError as exc:
            logger.warning("Airtime top-up to %s failed: %s", mask_phone(recipient), exc.message)
            return ProviderResult(False, OUTCOME_FAILED, exc.message, http_status=_failure_http_status(exc))

        status, message = classify_provider_outcome(payload)
        if status == OUTCOME_FAILED:
            logger.warning("Airtime provider declined top-up to %s: %s", mask_phone(recipient), message)
            return ProviderResult(
                False,
                status,
                message,
                transaction_id=extract_reference(payload),
                http_status=400,
                raw=payload,
            )
        return ProviderResult(
            True,
            status,
            message,
            transaction_id=extract_reference(payload),
            balance=extract_balance(payload),
            raw=payload,
        )
