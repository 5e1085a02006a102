import logging

from fastapi import APIRouter, Depends, HTTPException

from database import create_document, get_document, serialize_doc
from integrations import firebase
from responses import error_response, result
from schemas import USER, SignIn, SignUp, User
from security import get_current_user, hash_password, token_for_user, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/sign-up", status_code=201)
def sign_up(body: SignUp):
    if get_document(USER, {"email": body.email}):
        logger.info("Sign-up rejected, email already registered: %s", body.email)
        return error_response(400, "Validation Error", {"email": "Email already registered"})
    user = User(
        full_name=body.full_name,
        email=body.email,
        password=hash_password(body.password),
        role=body.role,
    )
    doc = create_document(USER, user)
    logger.info("New %s registered: %s", doc["role"], doc["email"])
    return result({"user": serialize_doc(doc), "token": token_for_user(doc)}, "User registered successfully")


@router.post("/sign-in")
def sign_in(body: SignIn):
    user = get_document(USER, {"email": body.email})
    if not user or not verify_password(body.password, user.get("password", "")):
        logger.info("Failed sign-in for %s", body.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return result({"user": serialize_doc(user), "token": token_for_user(user)}, "Signed in successfully")


@router.post("/firebase-token")
def firebase_token(user: dict = Depends(get_current_user)):
    token = firebase.create_custom_token(str(user["_id"]), {"role": user.get("role"), "email": user.get("email")})
    return result({"token": token})
