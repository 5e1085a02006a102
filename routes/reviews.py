import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database import (
    create_document,
    delete_document,
    get_document,
    get_document_by_id,
    get_documents,
    parse_object_id,
    serialize_doc,
    serialize_docs,
    to_object_ids,
    update_document,
)
from responses import result
from schemas import REVIEW, SERVICE, USER, Review
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

REVIEW_REFS = ["project_id", "service_id", "reviewer_id", "receiver_id"]


def average_rating(query: dict):
    """(average rounded to one decimal, count) over the matching reviews"""
    ratings = [r["rating"] for r in get_documents(REVIEW, query)]
    if not ratings:
        return 0, 0
    return round(sum(ratings) / len(ratings), 1), len(ratings)


def refresh_ratings(review: dict) -> None:
    if review.get("service_id"):
        rating, count = average_rating({"service_id": review["service_id"]})
        update_document(SERVICE, {"_id": review["service_id"]}, {"rating": rating, "reviews": count})
    if review.get("receiver_id"):
        rating, count = average_rating({"receiver_id": review["receiver_id"]})
        update_document(USER, {"_id": review["receiver_id"]}, {"rating": rating, "total_reviews": count})


@router.get("")
def list_reviews(service_id: Optional[str] = None, receiver_id: Optional[str] = None, project_id: Optional[str] = None):
    query = {}
    for field, value in (("service_id", service_id), ("receiver_id", receiver_id), ("project_id", project_id)):
        if value:
            query[field] = parse_object_id(value, field)
    return result(serialize_docs(get_documents(REVIEW, query, sort=[("created_at", -1)])))


@router.post("", status_code=201)
def create_review(body: Review, user: dict = Depends(get_current_user)):
    data = body.model_dump()
    if not data.get("reviewer_id"):
        data["reviewer_id"] = str(user["_id"])
    to_object_ids(data, REVIEW_REFS)

    if not get_document(USER, {"_id": data["receiver_id"]}):
        raise HTTPException(status_code=404, detail="User not found")
    if data.get("service_id") and not get_document(SERVICE, {"_id": data["service_id"]}):
        raise HTTPException(status_code=404, detail="Service not found")

    doc = create_document(REVIEW, data)
    refresh_ratings(doc)
    logger.info("Review %s for user %s rated %s", doc["_id"], doc["receiver_id"], doc["rating"])
    return result(serialize_doc(doc), "Review created successfully")


@router.get("/{review_id}")
def get_review(review_id: str):
    review = get_document_by_id(REVIEW, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return result(serialize_doc(review))


@router.delete("/{review_id}")
def delete_review(review_id: str):
    review = delete_document(REVIEW, {"_id": parse_object_id(review_id)})
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    refresh_ratings(review)
    return result(serialize_doc(review), "Review deleted successfully")
