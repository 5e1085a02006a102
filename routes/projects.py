import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database import (
    create_document,
    delete_document,
    get_document_by_id,
    get_joined_documents,
    parse_object_id,
    serialize_doc,
    serialize_docs,
    to_object_ids,
    update_document,
)
from integrations import midtrans
from recommendations import recommend_projects_ai, recommend_projects_by_skills
from responses import result
from schemas import PAYMENT, PROJECT, USER, Payment, Project, ProjectPaymentRequest, ProjectUpdate
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])

CLIENT_JOIN = [(USER, "client_id", "client")]


def _assigned_ids(data: dict) -> dict:
    for freelancer in data.get("assigned_freelancer") or []:
        freelancer["_id"] = parse_object_id(freelancer["_id"], "assigned_freelancer")
    return data


def _project_or_404(project_id: str) -> dict:
    docs = get_joined_documents(PROJECT, {"_id": parse_object_id(project_id)}, CLIENT_JOIN)
    if not docs:
        raise HTTPException(status_code=404, detail="Project not found")
    return docs[0]


@router.get("")
def list_projects(
    status: Optional[str] = None,
    category: Optional[str] = None,
    client_id: Optional[str] = None,
    q: Optional[str] = None,
):
    query = {}
    if status:
        query["status"] = status
    if category:
        query["category"] = category
    if client_id:
        query["client_id"] = parse_object_id(client_id, "client_id")
    if q:
        query["title"] = {"$regex": re.escape(q), "$options": "i"}
    projects = get_joined_documents(PROJECT, query, CLIENT_JOIN, sort={"created_at": -1})
    return result(serialize_docs(projects))


@router.post("", status_code=201)
def create_project(body: Project, user: dict = Depends(get_current_user)):
    data = body.model_dump(by_alias=True)
    if not data.get("client_id"):
        data["client_id"] = str(user["_id"])
    to_object_ids(data, ["client_id"])
    doc = create_document(PROJECT, _assigned_ids(data))
    logger.info("Project %s created by %s", doc["_id"], user["email"])
    return result(serialize_doc(doc), "Project created successfully")


@router.get("/recommendations")
def skill_recommendations(user: dict = Depends(get_current_user)):
    return result(recommend_projects_by_skills(user))


@router.get("/aiRecommendations")
def ai_recommendations(user: dict = Depends(get_current_user)):
    return result(recommend_projects_ai(user))


@router.get("/{project_id}")
def get_project(project_id: str):
    return result(serialize_doc(_project_or_404(project_id)))


@router.put("/{project_id}")
def update_project(project_id: str, body: ProjectUpdate):
    values = _assigned_ids(body.model_dump(exclude_unset=True, by_alias=True))
    project = update_document(PROJECT, {"_id": parse_object_id(project_id)}, values)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return result(serialize_doc(project), "Project updated successfully")


@router.delete("/{project_id}")
def delete_project(project_id: str):
    project = delete_document(PROJECT, {"_id": parse_object_id(project_id)})
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return result(serialize_doc(project), "Project deleted successfully")


@router.post("/{project_id}/payment", status_code=201)
def create_project_payment(
    project_id: str,
    body: Optional[ProjectPaymentRequest] = None,
    user: dict = Depends(get_current_user),
):
    project = get_document_by_id(PROJECT, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    payer_id = body.user_id if body and body.user_id else str(user["_id"])
    payer = get_document_by_id(USER, payer_id)
    if not payer:
        raise HTTPException(status_code=404, detail="User not found")
    if not project.get("budget") or project["budget"] <= 0:
        raise HTTPException(status_code=400, detail="Project budget must be greater than 0")

    order_id = midtrans.new_order_id()
    transaction = midtrans.create_transaction(
        order_id,
        project["budget"],
        customer=midtrans.customer_details(payer),
        items=[{"id": str(project["_id"]), "price": project["budget"], "quantity": 1, "name": project.get("title", "Project")}],
    )
    payment = Payment(
        project_id=str(project["_id"]),
        user_id=str(payer["_id"]),
        amount=project["budget"],
        order_id=order_id,
        snap_token=transaction.get("token", ""),
        payment_url=transaction.get("redirect_url", ""),
        metadata={"project_title": project.get("title", "")},
    )
    doc = create_document(PAYMENT, to_object_ids(payment.model_dump(), ["project_id", "user_id"]))
    logger.info("Payment %s created for project %s", order_id, project["_id"])

    data = serialize_doc(doc)
    data["token"] = transaction.get("token")
    data["redirect_url"] = transaction.get("redirect_url")
    return result(data, "Payment created successfully")
