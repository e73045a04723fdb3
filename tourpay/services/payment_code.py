import re

ORDER_PREFIX = "ORD"
BOOKING_PREFIX = "TK"

ORDER_PATTERN = re.compile(rf"{ORDER_PREFIX}\d+", re.IGNORECASE)
BOOKING_PATTERN = re.compile(rf"{BOOKING_PREFIX}\d+", re.IGNORECASE)
NUMERIC_PATTERN = re.compile(r"\d{6,}")

MEMO_PATTERNS = (ORDER_PATTERN, BOOKING_PATTERN, NUMERIC_PATTERN)


def extract_payment_code(content, code=None):
    structured = (code or "").strip()
    if structured:
        return structured.upper()

    memo = content or ""
    for pattern in MEMO_PATTERNS:
        match = pattern.search(memo)
        if match:
            return match.group(0).upper()
    return None


def is_order_reference(reference):
    return reference.startswith(ORDER_PREFIX) and reference[len(ORDER_PREFIX):].isdigit()


def is_booking_reference(reference):
    return reference.startswith(BOOKING_PREFIX) and reference[len(BOOKING_PREFIX):].isdigit()
