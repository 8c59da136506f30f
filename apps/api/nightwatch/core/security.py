from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from nightwatch.core.config import settings

security = HTTPBearer()

# JWT settings (tokens are issued by the main dashboard, we only read them)
SECRET_KEY = settings.jwt_secret_key
ALGORITHM = "HS256"


@dataclass(frozen=True)
class RequestContext:
    """Who is calling. Passed explicitly to anything that needs it."""

    user_id: UUID
    name: str
    role: str

    @property
    def is_operations(self) -> bool:
        return self.role.lower() in settings.operations_role_set


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )


def get_request_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> RequestContext:
    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    try:
        uid = UUID(str(user_id))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    return RequestContext(
        user_id=uid,
        name=payload.get("name") or "",
        role=payload.get("role") or "",
    )
