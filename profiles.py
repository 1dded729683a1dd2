"""
Profiles: one per user, with experience and education history embedded,
plus a passthrough to the GitHub repository listing for a username.
"""
import logging
from typing import List
from urllib.parse import quote

import requests
from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import current_user_id
from config import Settings, get_settings
from database import PROFILES, USERS, get_db, now, parse_object_id, serialize
from errors import BadRequest, NotFound
from schemas import Document, EducationRequest, ExperienceRequest, ProfileRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["profile"])

NO_PROFILE = "There is no profile for this user"


def populate(db: Database, profiles: List[dict]) -> List[dict]:
    """Replace each profile's user id with {_id, name, avatar} of that user."""
    ids = list({p["user"] for p in profiles})
    users = {u["_id"]: u for u in db[USERS].find({"_id": {"$in": ids}}, {"name": 1, "avatar": 1})}
    for profile in profiles:
        profile["user"] = users.get(profile["user"], {"_id": profile["user"]})
    return profiles


def _populated(db: Database, profile: dict) -> dict:
    return populate(db, [profile])[0]


def get_profile(db: Database, user_id: ObjectId) -> dict:
    profile = db[PROFILES].find_one({"user": user_id})
    if not profile:
        raise BadRequest(NO_PROFILE)
    return _populated(db, profile)


def upsert_profile(db: Database, user_id: str, payload: ProfileRequest) -> dict:
    uid = ObjectId(user_id)
    update = {
        "$set": payload.profile_fields(),
        "$setOnInsert": {"user": uid, "experience": [], "education": [], "date": now()},
    }
    try:
        profile = db[PROFILES].find_one_and_update(
            {"user": uid}, update, upsert=True, return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        # a concurrent request created the profile first, apply ours on top
        del update["$setOnInsert"]
        profile = db[PROFILES].find_one_and_update({"user": uid}, update, return_document=ReturnDocument.AFTER)
    return _populated(db, profile)


def list_profiles(db: Database) -> List[dict]:
    return populate(db, list(db[PROFILES].find()))


def delete_account(db: Database, user_id: str):
    """Remove the user's profile and user record. Their posts are kept."""
    uid = ObjectId(user_id)
    db[PROFILES].delete_one({"user": uid})
    db[USERS].delete_one({"_id": uid})
    logger.info("Deleted profile and account for %s", user_id)


def add_entry(db: Database, user_id: str, field: str, entry: Document) -> dict:
    profile = db[PROFILES].find_one_and_update(
        {"user": ObjectId(user_id)},
        {"$push": {field: {"$each": [entry.to_document()], "$position": 0}}},
        return_document=ReturnDocument.AFTER,
    )
    if profile is None:
        raise NotFound("Profile not found")
    return _populated(db, profile)


def remove_entry(db: Database, user_id: str, field: str, entry_id: ObjectId, label: str) -> dict:
    uid = ObjectId(user_id)
    profile = db[PROFILES].find_one_and_update(
        {"user": uid, f"{field}._id": entry_id},
        {"$pull": {field: {"_id": entry_id}}},
        return_document=ReturnDocument.AFTER,
    )
    if profile is None:
        if db[PROFILES].count_documents({"user": uid}, limit=1) == 0:
            raise NotFound("Profile not found")
        raise NotFound(f"{label} not found")
    return _populated(db, profile)


def github_repos(username: str, settings: Settings):
    """Latest public repositories of a GitHub user, as GitHub returns them."""
    url = f"{settings.github_api_url}/users/{quote(username, safe='')}/repos"
    auth = None
    if settings.github_client_id and settings.github_secret:
        auth = (settings.github_client_id, settings.github_secret)
    try:
        resp = requests.get(
            url,
            params={"per_page": 5, "sort": "created:asc"},
            headers={"user-agent": "devconnector", "accept": "application/vnd.github+json"},
            auth=auth,
            timeout=settings.github_timeout,
        )
    except requests.RequestException as e:
        logger.warning("GitHub request for %s failed: %s", username, e)
        raise NotFound("No Github profile found") from None
    if resp.status_code != 200:
        logger.warning("GitHub returned %s for %s", resp.status_code, username)
        raise NotFound("No Github profile found")
    try:
        return resp.json()
    except ValueError:
        logger.warning("GitHub returned a non-JSON body for %s", username)
        raise NotFound("No Github profile found") from None


# ------------------------------
# Routes
# ------------------------------

@router.get("/me")
def get_me(user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    return serialize(get_profile(db, ObjectId(user_id)))


@router.post("")
def create_or_update(payload: ProfileRequest, user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    return serialize(upsert_profile(db, user_id, payload))


@router.get("")
def list_all(db: Database = Depends(get_db)):
    return serialize(list_profiles(db))


@router.get("/user/{user_id}")
def get_by_user(user_id: str, db: Database = Depends(get_db)):
    return serialize(get_profile(db, parse_object_id(user_id, "User")))


@router.delete("")
def delete(user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    delete_account(db, user_id)
    return {"msg": "User deleted"}


@router.put("/experience")
def add_experience(payload: ExperienceRequest, user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    return serialize(add_entry(db, user_id, "experience", payload.to_entry()))


@router.delete("/experience/{exp_id}")
def delete_experience(exp_id: str, user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    entry_id = parse_object_id(exp_id, "Experience")
    return serialize(remove_entry(db, user_id, "experience", entry_id, "Experience"))


@router.put("/education")
def add_education(payload: EducationRequest, user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    return serialize(add_entry(db, user_id, "education", payload.to_entry()))


@router.delete("/education/{edu_id}")
def delete_education(edu_id: str, user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    entry_id = parse_object_id(edu_id, "Education")
    return serialize(remove_entry(db, user_id, "education", entry_id, "Education"))


@router.get("/github/{username}")
def github(username: str, settings: Settings = Depends(get_settings)):
    return github_repos(username, settings)
