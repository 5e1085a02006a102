from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database import (
    create_document,
    delete_document,
    get_document_by_id,
    get_documents,
    parse_object_id,
    serialize_doc,
    serialize_docs,
    to_object_ids,
    update_document,
)
from responses import result
from schemas import MESSAGE, Message, MessageUpdate
from security import get_current_user

router = APIRouter(prefix="/api/messages", tags=["messages"])


def _update(message_id: str, values: dict) -> dict:
    message = update_document(MESSAGE, {"_id": parse_object_id(message_id)}, values)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


@router.get("")
def list_messages(with_user: Optional[str] = None, user: dict = Depends(get_current_user)):
    me = user["_id"]
    if with_user:
        other = parse_object_id(with_user, "with_user")
        query = {
            "$or": [
                {"sender_id": me, "receiver_id": other},
                {"sender_id": other, "receiver_id": me},
            ]
        }
    else:
        query = {"$or": [{"sender_id": me}, {"receiver_id": me}]}
    messages = get_documents(MESSAGE, query, sort=[("created_at", 1)])
    return result(serialize_docs(messages))


@router.post("", status_code=201)
def create_message(body: Message, user: dict = Depends(get_current_user)):
    data = body.model_dump()
    if not data.get("sender_id"):
        data["sender_id"] = str(user["_id"])
    doc = create_document(MESSAGE, to_object_ids(data, ["sender_id", "receiver_id"]))
    return result(serialize_doc(doc), "Message sent successfully")


@router.get("/{message_id}")
def get_message(message_id: str):
    message = get_document_by_id(MESSAGE, message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return result(serialize_doc(message))


@router.put("/{message_id}")
def update_message(message_id: str, body: MessageUpdate):
    message = _update(message_id, body.model_dump(exclude_unset=True))
    return result(serialize_doc(message), "Message updated successfully")


@router.patch("/{message_id}/read")
def mark_message_read(message_id: str):
    message = _update(message_id, {"read": True})
    return result(serialize_doc(message), "Message marked as read")


@router.delete("/{message_id}")
def delete_message(message_id: str):
    message = delete_document(MESSAGE, {"_id": parse_object_id(message_id)})
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return result(serialize_doc(message), "Message deleted successfully")
