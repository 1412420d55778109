"""
Request dependencies: the finance service and the authenticated owner
"""

from typing import Optional
from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from ..config import FinanceConfig, get_config
from ..service import FinanceService


security = HTTPBearer(auto_error=False)

_service: Optional[FinanceService] = None


def get_finance_service() -> FinanceService:
    """Process-wide service built from configuration on first use"""
    global _service
    if _service is None:
        _service = FinanceService.from_config(get_config())
    return _service


def get_current_owner(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    owner_header: Optional[str] = Header(default=None, alias="X-Owner-Id"),
    config: FinanceConfig = Depends(get_config)
) -> str:
    """
    Owner id of the caller.

    With auth enabled it is the ``sub`` claim of a bearer JWT signed with the
    configured secret; tokens are issued elsewhere. With auth disabled the
    ``X-Owner-Id`` header is trusted as is.
    """
    if not config.auth_enabled:
        if not owner_header:
            raise HTTPException(status_code=401, detail="Missing X-Owner-Id header")
        return owner_header

    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(credentials.credentials, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    owner_id = payload.get("sub")
    if not owner_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return owner_id
