"""Request helpers shared by the API tests."""

from typing import Optional

BASE_URL = "http://test"
SAME_ORIGIN = {"Origin": BASE_URL}


def user_headers(user_id: str = "user-1", plan: str = "free", role: str = "user") -> dict:
    """Gateway headers for a signed-in user, plus a same-origin ``Origin``."""
    return {
        "X-User-Id": user_id,
        "X-User-Email": f"{user_id}@example.com",
        "X-User-Plan": plan,
        "X-User-Role": role,
        **SAME_ORIGIN,
    }


def admin_headers(user_id: str = "admin-1", csrf_token: Optional[str] = None) -> dict:
    headers = user_headers(user_id, plan="enterprise", role="admin")
    if csrf_token is not None:
        headers["X-CSRF-Token"] = csrf_token
    return headers
