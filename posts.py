"""
Posts, with likes and comments embedded in each post document.

Author name and avatar are copied onto posts and comments when they are
written and never refreshed, so old posts keep the identity they were made
under.
"""
import logging

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from auth import current_user_id
from database import POSTS, get_db, parse_object_id, serialize
from errors import BadRequest, NotFound, Unauthorized
from schemas import Comment, Like, Post, TextRequest
from users import find_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])


def _get_post(db: Database, post_id: ObjectId, projection=None) -> dict:
    post = db[POSTS].find_one({"_id": post_id}, projection)
    if not post:
        raise NotFound("Post not found")
    return post


def create_post(db: Database, user_id: str, text: str) -> dict:
    user = find_user(db, user_id)
    post = Post(user=user["_id"], text=text, name=user["name"], avatar=user.get("avatar")).to_document()
    post["_id"] = db[POSTS].insert_one(post).inserted_id
    return post


def list_posts(db: Database) -> list:
    return list(db[POSTS].find().sort([("date", DESCENDING), ("_id", DESCENDING)]))


def get_post(db: Database, post_id: ObjectId) -> dict:
    return _get_post(db, post_id)


def delete_post(db: Database, user_id: str, post_id: ObjectId):
    post = _get_post(db, post_id, {"user": 1})
    if str(post["user"]) != user_id:
        raise Unauthorized("User not authorized")
    db[POSTS].delete_one({"_id": post_id})
    logger.info("Post %s removed by %s", post_id, user_id)


def like_post(db: Database, user_id: str, post_id: ObjectId) -> list:
    uid = ObjectId(user_id)
    like = Like(user=uid).to_document()
    post = db[POSTS].find_one_and_update(
        {"_id": post_id, "likes.user": {"$ne": uid}},
        {"$push": {"likes": {"$each": [like], "$position": 0}}},
        projection={"likes": 1},
        return_document=ReturnDocument.AFTER,
    )
    if post is None:
        _get_post(db, post_id, {"_id": 1})
        raise BadRequest("Post already liked")
    return post["likes"]


def unlike_post(db: Database, user_id: str, post_id: ObjectId) -> list:
    uid = ObjectId(user_id)
    post = db[POSTS].find_one_and_update(
        {"_id": post_id, "likes.user": uid},
        {"$pull": {"likes": {"user": uid}}},
        projection={"likes": 1},
        return_document=ReturnDocument.AFTER,
    )
    if post is None:
        _get_post(db, post_id, {"_id": 1})
        raise BadRequest("Post has not yet been liked")
    return post["likes"]


def add_comment(db: Database, user_id: str, post_id: ObjectId, text: str) -> list:
    _get_post(db, post_id, {"_id": 1})
    user = find_user(db, user_id)
    comment = Comment(user=user["_id"], text=text, name=user["name"], avatar=user.get("avatar")).to_document()
    post = db[POSTS].find_one_and_update(
        {"_id": post_id},
        {"$push": {"comments": {"$each": [comment], "$position": 0}}},
        projection={"comments": 1},
        return_document=ReturnDocument.AFTER,
    )
    if post is None:
        raise NotFound("Post not found")
    return post["comments"]


def delete_comment(db: Database, user_id: str, post_id: ObjectId, comment_id: ObjectId):
    post = _get_post(db, post_id, {"comments": 1})
    comment = next((c for c in post.get("comments", []) if c["_id"] == comment_id), None)
    if comment is None:
        raise NotFound("Comment not found")
    if str(comment["user"]) != user_id:
        raise Unauthorized("User not authorized")
    db[POSTS].update_one({"_id": post_id}, {"$pull": {"comments": {"_id": comment_id}}})


# ------------------------------
# Routes (all private)
# ------------------------------

def post_id_param(id: str) -> ObjectId:
    return parse_object_id(id, "Post")


@router.post("")
def create(payload: TextRequest, user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    return serialize(create_post(db, user_id, payload.text))


@router.get("")
def list_all(user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    return serialize(list_posts(db))


@router.get("/{id}")
def get_one(user_id: str = Depends(current_user_id), post_id: ObjectId = Depends(post_id_param),
            db: Database = Depends(get_db)):
    return serialize(get_post(db, post_id))


@router.delete("/{id}")
def delete(user_id: str = Depends(current_user_id), post_id: ObjectId = Depends(post_id_param),
           db: Database = Depends(get_db)):
    delete_post(db, user_id, post_id)
    return {"msg": "Post removed"}


@router.put("/like/{id}")
def like(user_id: str = Depends(current_user_id), post_id: ObjectId = Depends(post_id_param),
         db: Database = Depends(get_db)):
    return serialize(like_post(db, user_id, post_id))


@router.put("/unlike/{id}")
def unlike(user_id: str = Depends(current_user_id), post_id: ObjectId = Depends(post_id_param),
           db: Database = Depends(get_db)):
    return serialize(unlike_post(db, user_id, post_id))


@router.post("/comment/{id}")
def comment(payload: TextRequest, user_id: str = Depends(current_user_id),
            post_id: ObjectId = Depends(post_id_param), db: Database = Depends(get_db)):
    return serialize(add_comment(db, user_id, post_id, payload.text))


@router.delete("/comment/delete/{postId}/{commentId}")
def uncomment(postId: str, commentId: str, user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    delete_comment(db, user_id, parse_object_id(postId, "Post"), parse_object_id(commentId, "Comment"))
    return {"msg": "Comment removed"}
