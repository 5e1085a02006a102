import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from database import (
    create_document,
    delete_document,
    get_document,
    get_document_by_id,
    get_documents,
    parse_object_id,
    serialize_doc,
    serialize_docs,
    update_document,
)
from integrations import media
from responses import ExternalServiceError, error_response, result
from schemas import USER, BalanceUpdate, User, UserUpdate
from security import get_current_user, hash_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

PROFILE_FOLDER = "profile_images"


def _email_taken(email: str, exclude_id=None) -> bool:
    query = {"email": email}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    return get_document(USER, query) is not None


@router.get("")
def list_users():
    return result(serialize_docs(get_documents(USER)))


@router.post("", status_code=201)
def create_user(body: User):
    if _email_taken(body.email):
        return error_response(400, "Validation Error", {"email": "Email already registered"})
    data = body.model_dump()
    data["password"] = hash_password(body.password)
    doc = create_document(USER, data)
    return result(serialize_doc(doc), "User created successfully")


@router.get("/me")
def me(user: dict = Depends(get_current_user)):
    return result(serialize_doc(user))


@router.get("/{user_id}")
def get_user(user_id: str):
    user = get_document_by_id(USER, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return result(serialize_doc(user))


@router.put("/{user_id}")
def update_user(user_id: str, body: UserUpdate):
    oid = parse_object_id(user_id)
    values = body.model_dump(exclude_unset=True)
    if values.get("email") and _email_taken(values["email"], exclude_id=oid):
        return error_response(400, "Validation Error", {"email": "Email already registered"})
    if values.get("password"):
        values["password"] = hash_password(values["password"])
    user = update_document(USER, {"_id": oid}, values)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return result(serialize_doc(user), "User updated successfully")


@router.delete("/{user_id}")
def delete_user(user_id: str):
    user = delete_document(USER, {"_id": parse_object_id(user_id)})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return result(serialize_doc(user), "User deleted successfully")


@router.patch("/{user_id}/balance")
def update_balance(user_id: str, body: BalanceUpdate):
    user = update_document(USER, {"_id": parse_object_id(user_id)}, {"balance": body.balance})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return result(serialize_doc(user), "Balance updated successfully")


async def _image_from_request(request: Request):
    """The image from a multipart `image` field or a JSON {"image": ...} body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        image = form.get("image")
        if isinstance(image, UploadFile):
            return image.file
        return image or None
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("image") or None
    return None


@router.patch("/{user_id}/upload-image")
async def upload_profile_image(user_id: str, request: Request):
    oid = parse_object_id(user_id)
    user = await run_in_threadpool(get_document, USER, {"_id": oid})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    image = await _image_from_request(request)
    if image is None:
        raise HTTPException(status_code=400, detail="No image provided")

    uploaded = await run_in_threadpool(media.upload_image, image, PROFILE_FOLDER)
    if user.get("profile_image_id"):
        try:
            await run_in_threadpool(media.delete_image, user["profile_image_id"])
        except ExternalServiceError:
            logger.warning("Could not delete previous profile image %s", user["profile_image_id"], exc_info=True)

    updated = await run_in_threadpool(
        update_document,
        USER,
        {"_id": oid},
        {"profile_image": uploaded["url"], "profile_image_id": uploaded["public_id"]},
    )
    return result(serialize_doc(updated), "Profile image updated successfully")
