import hashlib
import hmac

PAYMENT_SECRET = "test_key_secret"
OWNER_ID = "owner-1"
STUDENT_ID = "student-1"
OTHER_STUDENT_ID = "student-2"


def auth_headers(user_id: str, role: str) -> dict:
    return {"X-User-Id": user_id, "X-User-Role": role}


def sign(order_id: str, payment_id: str, secret: str = PAYMENT_SECRET) -> str:
    """Gateway-side checkout signature, computed independently of the engine."""
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()
