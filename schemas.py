"""
Database Schemas

MongoDB collection schemas defined as Pydantic models.
These schemas validate request bodies at the API boundary.

Each entity has a Create model (POST) and an Update model where every
field is optional (PUT/PATCH only apply the fields that were sent).
The collection name is the lowercase entity name:
- User -> "user" collection
- ProjectFeature -> "projectfeature" collection
"""

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

ObjectIdStr = Annotated[str, Field(pattern=r"^[0-9a-fA-F]{24}$", description="MongoDB ObjectId as 24 hex chars")]

Role = Literal["freelancer", "client"]
ProjectStatus = Literal["open", "in_progress", "completed", "cancelled"]
FeatureStatus = Literal["pending", "in progress", "completed"]
PaymentStatus = Literal["pending", "success", "failed", "expired", "refunded"]

USER = "user"
PROJECT = "project"
SERVICE = "service"
PROJECT_FEATURE = "projectfeature"
PROJECT_DISCUSSION = "projectdiscussion"
MESSAGE = "message"
PAYMENT = "payment"
REVIEW = "review"

COLLECTIONS = [USER, PROJECT, SERVICE, PROJECT_FEATURE, PROJECT_DISCUSSION, MESSAGE, PAYMENT, REVIEW]


# ---------- Auth ----------
class SignUp(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = "freelancer"


class SignIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# ---------- User ----------
class User(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role
    profile_image: str = ""
    profile_image_id: Optional[str] = None
    location: str = ""
    balance: float = Field(0, ge=0, description="Wallet balance in IDR")
    about: str = ""
    phone: str = ""
    hourly_rate: float = Field(0, ge=0)
    skills: List[str] = []
    total_projects: int = Field(0, ge=0)
    company_name: str = ""
    industry: str = ""
    website: str = ""
    rating: float = Field(0, ge=0, le=5)
    total_reviews: int = Field(0, ge=0)


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[Role] = None
    profile_image: Optional[str] = None
    location: Optional[str] = None
    about: Optional[str] = None
    phone: Optional[str] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    skills: Optional[List[str]] = None
    total_projects: Optional[int] = Field(None, ge=0)
    company_name: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None


class BalanceUpdate(BaseModel):
    balance: float = Field(..., ge=0)


class ImagePayload(BaseModel):
    image: str = Field(..., min_length=1, description="Data URI or remote URL")


# ---------- Project ----------
class AssignedFreelancer(BaseModel):
    id: ObjectIdStr = Field(..., alias="_id")
    full_name: str
    profile_image: str = ""
    email: str
    role: str = "freelancer"

    model_config = {"populate_by_name": True}


class Project(BaseModel):
    client_id: Optional[ObjectIdStr] = None
    title: str = Field(..., min_length=1)
    description: str = ""
    budget: float = Field(..., ge=0, description="Budget in IDR")
    category: str = ""
    location: str = ""
    duration: str = ""
    status: ProjectStatus = "open"
    requirements: List[str] = []
    image: List[str] = []
    assigned_freelancer: List[AssignedFreelancer] = []
    features: List[str] = []
    progress: int = Field(0, ge=0, le=100)


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    budget: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    status: Optional[ProjectStatus] = None
    requirements: Optional[List[str]] = None
    image: Optional[List[str]] = None
    assigned_freelancer: Optional[List[AssignedFreelancer]] = None
    features: Optional[List[str]] = None
    progress: Optional[int] = Field(None, ge=0, le=100)


class ProjectPaymentRequest(BaseModel):
    user_id: Optional[ObjectIdStr] = None


# ---------- Service ----------
class Service(BaseModel):
    freelancer_id: Optional[ObjectIdStr] = None
    title: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0, description="Price in IDR")
    delivery_time: str = ""
    category: str = ""
    images: List[str] = []
    rating: float = Field(0, ge=0, le=5)
    reviews: int = Field(0, ge=0)
    includes: List[str] = []
    requirements: List[str] = []


class ServiceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    delivery_time: Optional[str] = None
    category: Optional[str] = None
    images: Optional[List[str]] = None
    includes: Optional[List[str]] = None
    requirements: Optional[List[str]] = None


# ---------- Project features ----------
class ProjectFeature(BaseModel):
    project_id: ObjectIdStr
    freelancer_id: Optional[ObjectIdStr] = None
    status: FeatureStatus = "pending"
    is_paid: bool = False


class ProjectFeatureUpdate(BaseModel):
    status: Optional[FeatureStatus] = None
    is_paid: Optional[bool] = None


class FeatureStatusUpdate(BaseModel):
    status: FeatureStatus


# ---------- Project discussions ----------
class ProjectDiscussion(BaseModel):
    project_feature_id: ObjectIdStr
    sender_id: Optional[ObjectIdStr] = None
    description: str = Field(..., min_length=1)
    images: List[str] = []
    files: List[str] = []


class ProjectDiscussionUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    images: Optional[List[str]] = None
    files: Optional[List[str]] = None


# ---------- Messages ----------
class Message(BaseModel):
    sender_id: Optional[ObjectIdStr] = None
    receiver_id: ObjectIdStr
    text: str = Field(..., min_length=1)
    read: bool = False


class MessageUpdate(BaseModel):
    text: Optional[str] = Field(None, min_length=1)
    read: Optional[bool] = None


# ---------- Reviews ----------
class Review(BaseModel):
    project_id: Optional[ObjectIdStr] = None
    service_id: Optional[ObjectIdStr] = None
    reviewer_id: Optional[ObjectIdStr] = None
    receiver_id: ObjectIdStr
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""


# ---------- Payments ----------
class Payment(BaseModel):
    project_id: Optional[ObjectIdStr] = None
    user_id: ObjectIdStr
    amount: float = Field(..., gt=0)
    currency: str = "IDR"
    status: PaymentStatus = "pending"
    payment_method: Optional[str] = None
    transaction_id: str = ""
    order_id: str = Field(..., min_length=1)
    snap_token: str = ""
    payment_url: str = ""
    metadata: Dict[str, Any] = {}


class PaymentUpdate(BaseModel):
    status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    snap_token: Optional[str] = None
    payment_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class PrePayment(BaseModel):
    user_id: Optional[ObjectIdStr] = None
    amount: float = Field(..., gt=0)
    title: str = Field(..., min_length=1)


class CheckStatus(BaseModel):
    order_id: Optional[str] = None
