"""Static credential checks for the payment form and the accrual trigger"""

import secrets
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from loan_ledger.config import settings
from loan_ledger.domain.exceptions import UnauthorizedError

PAYMENT_REALM = "Payments"

basic = HTTPBasic(realm=PAYMENT_REALM, auto_error=False)


def _matches(received: Optional[str], expected: str) -> bool:
    if received is None:
        return False
    return secrets.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


def require_payment_credentials(credentials: Optional[HTTPBasicCredentials] = Depends(basic)) -> str:
    """
    Gate payment submission behind the single shared Basic-Auth credential.

    Refuses everything when the credential is not configured.
    """
    user = settings.payment_basic_auth_user
    password = settings.payment_basic_auth_password
    if not user or not password or credentials is None:
        raise UnauthorizedError("Authentication required")

    user_ok = _matches(credentials.username, user)
    password_ok = _matches(credentials.password, password)
    if not (user_ok and password_ok):
        raise UnauthorizedError("Authentication required")
    return credentials.username


def require_cron_secret(
    authorization: Optional[str] = Header(None),
    x_cron_secret: Optional[str] = Header(None),
) -> None:
    """Accept `Authorization: Bearer <secret>` or `X-Cron-Secret: <secret>` when a secret is configured"""
    secret = settings.cron_secret
    if not secret:
        return

    bearer = None
    if authorization and authorization.startswith("Bearer "):
        bearer = authorization[len("Bearer "):]

    if not (_matches(bearer, secret) or _matches(x_cron_secret, secret)):
        raise UnauthorizedError("Unauthorized")
