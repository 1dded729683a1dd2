import logging

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import check_password, current_user_id, gravatar_url, hash_password, issue_token
from config import Settings, get_settings
from database import USERS, get_db, serialize
from errors import BadRequest, NotFound
from schemas import LoginRequest, RegisterRequest, User

logger = logging.getLogger(__name__)

router = APIRouter()


def find_user(db: Database, user_id: str) -> dict:
    user = db[USERS].find_one({"_id": ObjectId(user_id)}, {"password": 0})
    if not user:
        raise NotFound("User not found")
    return user


def register_user(db: Database, payload: RegisterRequest) -> ObjectId:
    if db[USERS].find_one({"email": payload.email}, {"_id": 1}):
        raise BadRequest("User already exists")
    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
        avatar=gravatar_url(payload.email),
    )
    try:
        user_id = db[USERS].insert_one(user.to_document()).inserted_id
    except DuplicateKeyError:
        # lost a race with a concurrent registration for the same email
        raise BadRequest("User already exists") from None
    logger.info("Registered user %s", user_id)
    return user_id


def authenticate(db: Database, payload: LoginRequest) -> ObjectId:
    user = db[USERS].find_one({"email": payload.email})
    if not user or not check_password(payload.password, user["password"]):
        raise BadRequest("Invalid Credentials")
    return user["_id"]


# ------------------------------
# Routes
# ------------------------------

@router.post("/api/users")
def register(payload: RegisterRequest, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    user_id = register_user(db, payload)
    return {"token": issue_token(str(user_id), settings)}


@router.get("/api/auth")
def get_me(user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    return serialize(find_user(db, user_id))


@router.post("/api/auth")
def login(payload: LoginRequest, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    user_id = authenticate(db, payload)
    return {"token": issue_token(str(user_id), settings)}
