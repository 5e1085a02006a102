import logging
import re
from typing import Optional

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
from recommendations import recommend_services_ai
from responses import result
from schemas import SERVICE, USER, Service, ServiceUpdate
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/services", tags=["services"])

FREELANCER_JOIN = [(USER, "freelancer_id", "freelancer")]


@router.get("")
def list_services(freelancer_id: Optional[str] = None, category: Optional[str] = None, q: Optional[str] = None):
    query = {}
    if freelancer_id:
        query["freelancer_id"] = parse_object_id(freelancer_id, "freelancer_id")
    if category:
        query["category"] = category
    if q:
        query["title"] = {"$regex": re.escape(q), "$options": "i"}
    services = get_joined_documents(SERVICE, query, FREELANCER_JOIN, sort={"created_at": -1})
    return result(serialize_docs(services))


@router.post("", status_code=201)
def create_service(body: Service, user: dict = Depends(get_current_user)):
    data = body.model_dump()
    if not data.get("freelancer_id"):
        data["freelancer_id"] = str(user["_id"])
    doc = create_document(SERVICE, to_object_ids(data, ["freelancer_id"]))
    logger.info("Service %s created by %s", doc["_id"], user["email"])
    return result(serialize_doc(doc), "Service created successfully")


@router.get("/aiRecommendations")
def ai_recommendations(user: dict = Depends(get_current_user)):
    return result(recommend_services_ai(user))


@router.get("/{service_id}")
def get_service(service_id: str):
    docs = get_joined_documents(SERVICE, {"_id": parse_object_id(service_id)}, FREELANCER_JOIN)
    if not docs:
        raise HTTPException(status_code=404, detail="Service not found")
    return result(serialize_doc(docs[0]))


@router.put("/{service_id}")
def update_service(service_id: str, body: ServiceUpdate):
    service = update_document(SERVICE, {"_id": parse_object_id(service_id)}, body.model_dump(exclude_unset=True))
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return result(serialize_doc(service), "Service updated successfully")


@router.delete("/{service_id}")
def delete_service(service_id: str):
    service = delete_document(SERVICE, {"_id": parse_object_id(service_id)})
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return result(serialize_doc(service), "Service deleted successfully")
