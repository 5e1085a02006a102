from fastapi import APIRouter, Depends, HTTPException

from database import (
    create_document,
    delete_document,
    get_joined_documents,
    parse_object_id,
    serialize_doc,
    serialize_docs,
    to_object_ids,
    update_document,
)
from responses import result
from schemas import PROJECT_DISCUSSION, USER, ProjectDiscussion, ProjectDiscussionUpdate
from security import get_current_user

router = APIRouter(prefix="/api/projectdiscussions", tags=["project discussions"])

SENDER_JOIN = [(USER, "sender_id", "sender")]
OLDEST_FIRST = {"created_at": 1}


@router.get("")
def list_project_discussions():
    discussions = get_joined_documents(PROJECT_DISCUSSION, {}, SENDER_JOIN, sort=OLDEST_FIRST)
    return result(serialize_docs(discussions))


@router.post("", status_code=201)
def create_project_discussion(body: ProjectDiscussion, user: dict = Depends(get_current_user)):
    data = body.model_dump()
    if not data.get("sender_id"):
        data["sender_id"] = str(user["_id"])
    doc = create_document(PROJECT_DISCUSSION, to_object_ids(data, ["project_feature_id", "sender_id"]))
    return result(serialize_doc(doc), "Discussion created successfully")


@router.get("/projectfeature/{feature_id}")
def list_feature_discussions(feature_id: str):
    discussions = get_joined_documents(
        PROJECT_DISCUSSION,
        {"project_feature_id": parse_object_id(feature_id)},
        SENDER_JOIN,
        sort=OLDEST_FIRST,
    )
    return result(serialize_docs(discussions))


@router.get("/{discussion_id}")
def get_project_discussion(discussion_id: str):
    docs = get_joined_documents(PROJECT_DISCUSSION, {"_id": parse_object_id(discussion_id)}, SENDER_JOIN)
    if not docs:
        raise HTTPException(status_code=404, detail="Discussion not found")
    return result(serialize_doc(docs[0]))


@router.put("/{discussion_id}")
def update_project_discussion(discussion_id: str, body: ProjectDiscussionUpdate):
    discussion = update_document(
        PROJECT_DISCUSSION, {"_id": parse_object_id(discussion_id)}, body.model_dump(exclude_unset=True)
    )
    if not discussion:
        raise HTTPException(status_code=404, detail="Discussion not found")
    return result(serialize_doc(discussion), "Discussion updated successfully")


@router.delete("/{discussion_id}")
def delete_project_discussion(discussion_id: str):
    discussion = delete_document(PROJECT_DISCUSSION, {"_id": parse_object_id(discussion_id)})
    if not discussion:
        raise HTTPException(status_code=404, detail="Discussion not found")
    return result(serialize_doc(discussion), "Discussion deleted successfully")
