import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from database import get_document, parse_object_id
from responses import error_response
from schemas import USER
from settings import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# (method or None for any method, path pattern) pairs that skip the token check
PUBLIC_ROUTES = [
    (None, re.compile(r"^/api/auth/")),
    ("POST", re.compile(r"^/api/payments/(callback|notification)/?$")),
    ("GET", re.compile(r"^/api/projects(/(?!(recommendations|aiRecommendations)/?$)[^/]+)?/?$")),
    ("GET", re.compile(r"^/api/services(/(?!aiRecommendations/?$)[^/]+)?/?$")),
]


# Auth helpers

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def token_for_user(user: dict) -> str:
    return create_access_token({"sub": user["email"], "id": str(user["_id"]), "role": user.get("role")})


def decode_token(token: str) -> dict:
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def is_public(method: str, path: str) -> bool:
    if not path.startswith("/api/"):
        return True
    for allowed_method, pattern in PUBLIC_ROUTES:
        if allowed_method in (None, method) and pattern.match(path):
            return True
    return False


async def auth_middleware(request: Request, call_next):
    """Verify the bearer token on every non-public /api request."""
    if request.method == "OPTIONS" or is_public(request.method, request.url.path):
        return await call_next(request)

    token = bearer_token(request.headers.get("Authorization"))
    if not token:
        return error_response(401, "Authentication required")
    try:
        payload = decode_token(token)
    except JWTError as e:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, e)
        return error_response(401, "Invalid token")

    request.state.user = payload
    return await call_next(request)


def get_current_user(request: Request) -> dict:
    payload = getattr(request.state, "user", None)
    if payload is None:
        token = bearer_token(request.headers.get("Authorization"))
        if not token:
            raise HTTPException(status_code=401, detail="Authentication required")
        try:
            payload = decode_token(token)
        except JWTError:
            raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = get_document(USER, {"_id": parse_object_id(user_id)})
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user
