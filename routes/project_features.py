import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database import (
    create_document,
    delete_document,
    get_document,
    get_joined_documents,
    parse_object_id,
    serialize_doc,
    serialize_docs,
    to_object_ids,
    update_document,
)
from responses import result
from schemas import PROJECT, PROJECT_FEATURE, USER, FeatureStatusUpdate, ProjectFeature, ProjectFeatureUpdate
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projectfeatures", tags=["project features"])

JOINS = [(PROJECT, "project_id", "project"), (USER, "freelancer_id", "freelancer")]


def _update(feature_id: str, values: dict) -> dict:
    feature = update_document(PROJECT_FEATURE, {"_id": parse_object_id(feature_id)}, values)
    if not feature:
        raise HTTPException(status_code=404, detail="Project feature not found")
    return feature


@router.get("")
def list_project_features(project_id: Optional[str] = None, freelancer_id: Optional[str] = None):
    query = {}
    if project_id:
        query["project_id"] = parse_object_id(project_id, "project_id")
    if freelancer_id:
        query["freelancer_id"] = parse_object_id(freelancer_id, "freelancer_id")
    features = get_joined_documents(PROJECT_FEATURE, query, JOINS, sort={"created_at": -1})
    return result(serialize_docs(features))


@router.post("", status_code=201)
def create_project_feature(body: ProjectFeature, user: dict = Depends(get_current_user)):
    data = body.model_dump()
    if not data.get("freelancer_id"):
        data["freelancer_id"] = str(user["_id"])
    to_object_ids(data, ["project_id", "freelancer_id"])

    if not get_document(PROJECT, {"_id": data["project_id"]}):
        raise HTTPException(status_code=404, detail="Project not found")
    if get_document(PROJECT_FEATURE, {"project_id": data["project_id"], "freelancer_id": data["freelancer_id"]}):
        raise HTTPException(status_code=409, detail="Freelancer already applied to this project")

    doc = create_document(PROJECT_FEATURE, data)
    logger.info("Freelancer %s applied to project %s", data["freelancer_id"], data["project_id"])
    return result(serialize_doc(doc), "Project feature created successfully")


@router.get("/{feature_id}")
def get_project_feature(feature_id: str):
    docs = get_joined_documents(PROJECT_FEATURE, {"_id": parse_object_id(feature_id)}, JOINS)
    if not docs:
        raise HTTPException(status_code=404, detail="Project feature not found")
    return result(serialize_doc(docs[0]))


@router.put("/{feature_id}")
def update_project_feature(feature_id: str, body: ProjectFeatureUpdate):
    feature = _update(feature_id, body.model_dump(exclude_unset=True))
    return result(serialize_doc(feature), "Project feature updated successfully")


@router.patch("/{feature_id}")
def update_project_feature_status(feature_id: str, body: FeatureStatusUpdate):
    feature = _update(feature_id, {"status": body.status})
    return result(serialize_doc(feature), "Project feature status updated successfully")


@router.delete("/{feature_id}")
def delete_project_feature(feature_id: str):
    feature = delete_document(PROJECT_FEATURE, {"_id": parse_object_id(feature_id)})
    if not feature:
        raise HTTPException(status_code=404, detail="Project feature not found")
    return result(serialize_doc(feature), "Project feature deleted successfully")
