"""
Database Schemas for the developer network

Document models mirror the MongoDB collections (users, profiles, posts) and
the records embedded in them. Request models carry the validation messages
returned to clients.
"""
from datetime import date, datetime, time, timezone
from typing import Annotated, Any, Dict, List, Optional, Union

from bson import ObjectId
from email_validator import EmailNotValidError, validate_email
from pydantic import (
    BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, StringConstraints, field_validator, model_validator,
)

from database import now

SOCIAL_NETWORKS = ("youtube", "twitter", "facebook", "linkedin", "instagram")

Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]
When = Union[datetime, date]


def _missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list)):
        return not (value.strip() if isinstance(value, str) else value)
    return False


def required(message: str, type_: Any = Trimmed):
    """Annotated type that fails with `message` when the value is absent or blank."""
    def check(value):
        if _missing(value):
            raise ValueError(message)
        return value
    return Annotated[Optional[type_], BeforeValidator(check)]


def valid_email(value: Optional[str]) -> str:
    try:
        return validate_email((value or "").strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        raise ValueError("Please include a valid email") from None


def as_datetime(value: Optional[date]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


# ------------------------------
# Documents
# ------------------------------

class Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class User(Document):
    name: str = Field(..., description="Display name")
    email: EmailStr = Field(..., description="Unique email")
    password: str = Field(..., description="bcrypt hash")
    avatar: str = Field(..., description="Gravatar URL derived from the email")
    date: datetime = Field(default_factory=now)


class Like(Document):
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    user: ObjectId


class Comment(Document):
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    user: ObjectId
    text: str
    name: str
    avatar: Optional[str] = None
    date: datetime = Field(default_factory=now)


class Post(Document):
    user: ObjectId = Field(..., description="Author user id")
    text: str
    name: str = Field(..., description="Author name at posting time")
    avatar: Optional[str] = Field(None, description="Author avatar at posting time")
    likes: List[Like] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    date: datetime = Field(default_factory=now)


class Experience(Document):
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    title: str
    company: str
    location: Optional[str] = None
    from_: datetime = Field(..., alias="from")
    to: Optional[datetime] = None
    current: bool = False
    description: Optional[str] = None


class Education(Document):
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    school: str
    degree: str
    fieldofstudy: str
    from_: datetime = Field(..., alias="from")
    to: Optional[datetime] = None
    current: bool = False
    description: Optional[str] = None


# ------------------------------
# Requests
# ------------------------------

class Payload(BaseModel):
    model_config = ConfigDict(validate_default=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def fill_aliased(cls, data):
        # absent aliased fields are validated under their alias, not the attribute name
        if isinstance(data, dict):
            data = dict(data)
            for name, info in cls.model_fields.items():
                if info.alias and info.alias not in data and name not in data:
                    data[info.alias] = info.default
        return data


class RegisterRequest(Payload):
    name: required("Name is required") = None
    email: Optional[Trimmed] = None
    password: Optional[str] = None

    check_email = field_validator("email")(valid_email)

    @field_validator("password")
    @classmethod
    def check_password(cls, value):
        if not value or len(value) < 6:
            raise ValueError("Please enter a password with 6 or more characters")
        return value


class LoginRequest(Payload):
    email: Optional[Trimmed] = None
    password: required("Password is required", str) = None

    check_email = field_validator("email")(valid_email)


class TextRequest(Payload):
    text: required("Text is required") = None


class ProfileRequest(Payload):
    status: required("Status is required") = None
    skills: required("Skills is required", Union[str, List[str]]) = None
    company: Optional[Trimmed] = None
    website: Optional[Trimmed] = None
    location: Optional[Trimmed] = None
    bio: Optional[Trimmed] = None
    githubusername: Optional[Trimmed] = None
    youtube: Optional[Trimmed] = None
    twitter: Optional[Trimmed] = None
    facebook: Optional[Trimmed] = None
    linkedin: Optional[Trimmed] = None
    instagram: Optional[Trimmed] = None

    @field_validator("skills")
    @classmethod
    def split_skills(cls, value):
        items = value.split(",") if isinstance(value, str) else value
        skills = [s.strip() for s in items if s and s.strip()]
        if not skills:
            raise ValueError("Skills is required")
        return skills

    def profile_fields(self) -> Dict[str, Any]:
        """Fields to `$set`, leaving out anything the client did not send."""
        fields = {}
        for name in ("company", "website", "location", "bio", "status", "githubusername", "skills"):
            value = getattr(self, name)
            if value:
                fields[name] = value
        for network in SOCIAL_NETWORKS:
            value = getattr(self, network)
            if value:
                fields[f"social.{network}"] = value
        return fields


class ExperienceRequest(Payload):
    title: required("Title is required") = None
    company: required("Company is required") = None
    from_: required("From date is required", When) = Field(None, alias="from")
    location: Optional[Trimmed] = None
    to: Optional[When] = None
    current: bool = False
    description: Optional[Trimmed] = None

    def to_entry(self) -> Experience:
        return Experience(
            title=self.title,
            company=self.company,
            location=self.location,
            from_=as_datetime(self.from_),
            to=as_datetime(self.to),
            current=self.current,
            description=self.description,
        )


class EducationRequest(Payload):
    school: required("School is required") = None
    degree: required("Degree is required") = None
    fieldofstudy: required("Field of study is required") = None
    from_: required("From date is required", When) = Field(None, alias="from")
    to: Optional[When] = None
    current: bool = False
    description: Optional[Trimmed] = None

    def to_entry(self) -> Education:
        return Education(
            school=self.school,
            degree=self.degree,
            fieldofstudy=self.fieldofstudy,
            from_=as_datetime(self.from_),
            to=as_datetime(self.to),
            current=self.current,
            description=self.description,
        )
