import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from tourpay.errors import MalformedNotification

TRANSFER_IN = "in"
TRANSFER_OUT = "out"


@dataclass(frozen=True)
class GatewayNotification:
    gateway_transaction_id: int
    gateway: str
    transaction_date: datetime
    account_number: str
    content: str
    transfer_type: str
    transfer_amount: Decimal
    code: Optional[str] = None
    accumulated: Decimal = Decimal("0")
    sub_account: Optional[str] = None
    reference_code: Optional[str] = None
    description: Optional[str] = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_incoming(self):
        return self.transfer_type == TRANSFER_IN

    def audit_blob(self):
        return json.dumps(self.raw, ensure_ascii=False, sort_keys=True, default=str)


def _decimal(value, field_name, required=True):
    if value is None or value == "":
        if required:
            raise MalformedNotification(f"Missing {field_name}.")
        return Decimal("0")
    if isinstance(value, bool):
        raise MalformedNotification(f"Invalid {field_name}.")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise MalformedNotification(f"Invalid {field_name}.") from exc
    if not amount.is_finite():
        raise MalformedNotification(f"Invalid {field_name}.")
    return amount


def _optional_str(value):
    text = str(value).strip() if value is not None else ""
    return text or None


def parse_notification(payload):
    if not isinstance(payload, dict) or not payload:
        raise MalformedNotification("Invalid webhook data.")

    raw_id = payload.get("id")
    if isinstance(raw_id, bool):
        raise MalformedNotification("Invalid transaction id.")
    try:
        gateway_transaction_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise MalformedNotification("Invalid transaction id.") from exc
    if gateway_transaction_id <= 0:
        raise MalformedNotification("Invalid transaction id.")

    gateway = str(payload.get("gateway") or "").strip()
    if not gateway:
        raise MalformedNotification("Missing gateway.")

    account_number = str(payload.get("accountNumber") or "").strip()
    if not account_number:
        raise MalformedNotification("Missing accountNumber.")

    transfer_type = str(payload.get("transferType") or "").strip().lower()
    if transfer_type not in {TRANSFER_IN, TRANSFER_OUT}:
        raise MalformedNotification("transferType must be 'in' or 'out'.")

    transfer_amount = _decimal(payload.get("transferAmount"), "transferAmount")
    if transfer_amount <= 0:
        raise MalformedNotification("transferAmount must be positive.")

    raw_date = str(payload.get("transactionDate") or "").strip()
    if raw_date.endswith(("Z", "z")):
        raw_date = raw_date[:-1] + "+00:00"
    try:
        transaction_date = datetime.fromisoformat(raw_date)
    except ValueError as exc:
        raise MalformedNotification("Invalid transactionDate.") from exc

    content = payload.get("content")
    if content is not None and not isinstance(content, str):
        raise MalformedNotification("content must be text.")

    return GatewayNotification(
        gateway_transaction_id=gateway_transaction_id,
        gateway=gateway,
        transaction_date=transaction_date,
        account_number=account_number,
        content=content or "",
        transfer_type=transfer_type,
        transfer_amount=transfer_amount,
        code=_optional_str(payload.get("code")),
        accumulated=_decimal(payload.get("accumulated"), "accumulated", required=False),
        sub_account=_optional_str(payload.get("subAccount")),
        reference_code=_optional_str(payload.get("referenceCode")),
        description=_optional_str(payload.get("description")),
        raw=dict(payload),
    )
