"""
Forum Routes

GET /forum - Search forum posts
GET /forum/pinned - Pinned posts
GET /forum/stats - Forum statistics
GET /forum/category/{category} - Posts in one category
GET /forum/author/{id} - Posts by one author
GET /forum/{id} - Post detail with replies (counts a view)
POST /forum - Start a thread
PUT /forum/{id} - Edit (author or admin)
DELETE /forum/{id} - Delete (author or admin)
POST /forum/{id}/reply - Reply to a thread (not when locked)
POST /forum/{id}/like - Like a post
POST /forum/{id}/reply/{reply_id}/like - Like a reply
PUT /forum/{id}/pin - Toggle pinned (admin)
PUT /forum/{id}/lock - Toggle locked (admin)
"""

from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from internhub.core.auth import get_current_principal, require_admin
from internhub.db.mongodb import get_collection, get_db
from internhub.schemas.schemas import (
    ForumCategory, ForumPostCreate, ForumPostUpdate, ForumReplyCreate, ForumSort, SortOrder
)
from internhub.services import content_service
from internhub.services.mongo_service import (
    count_by, parse_object_id, populate_authors, serialize_doc, serialize_docs
)
from internhub.utils.dates import utcnow

router = APIRouter(prefix="/forum", tags=["Forum"])

SORT_FIELDS = {"createdAt": "createdAt", "views": "views", "likes": "likes", "replies": "replyCount"}
NOT_FOUND = "Post not found"


def _listing(result: dict, **extra) -> dict:
    result["posts"] = result.pop("items")
    result.update(extra)
    return result


def _with_authors(db: Database, post: dict) -> dict:
    populate_authors(db, [post])
    populate_authors(db, post.get("replies", []))
    return post


def _toggle(db: Database, post_id: str, field: str) -> bool:
    post = content_service.find_or_404(db, "forum", post_id, NOT_FOUND)
    value = not post.get(field, False)
    get_collection(db, "forum").update_one({"_id": post["_id"]}, {"$set": {field: value, "updatedAt": utcnow()}})
    return value


@router.get("")
def search_posts(
    search: Optional[str] = Query(None),
    category: Optional[ForumCategory] = Query(None),
    tags: Optional[str] = Query(None, description="Comma-separated, matches any"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: ForumSort = Query(ForumSort.created_at),
    order: SortOrder = Query(SortOrder.desc),
    db: Database = Depends(get_db),
):
    query = content_service.build_content_query({}, search, category.value if category else None, tags)
    return _listing(content_service.list_content(
        db, "forum", query, page, limit, sort.value, order.value, SORT_FIELDS
    ))


@router.get("/pinned")
def pinned_posts(db: Database = Depends(get_db)):
    docs = list(
        get_collection(db, "forum")
        .find({"isPinned": True})
        .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        .limit(5)
    )
    return {"success": True, "posts": serialize_docs(populate_authors(db, docs))}


@router.get("/stats")
def forum_stats(db: Database = Depends(get_db)):
    forum = get_collection(db, "forum")
    return {
        "success": True,
        "stats": {
            "totalPosts": forum.count_documents({}),
            "postsByCategory": count_by(forum, {}, "category"),
            "topAuthors": content_service.top_authors(db, "forum", {}, "likes", "totalLikes"),
        },
    }


@router.get("/category/{category}")
def posts_by_category(
    category: ForumCategory,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    result = content_service.list_content(
        db, "forum", {"category": category.value}, page, limit, "createdAt", "desc", SORT_FIELDS
    )
    return _listing(result, category=category.value)


@router.get("/author/{author_id}")
def posts_by_author(
    author_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    return _listing(content_service.list_content(
        db, "forum", content_service.author_filter(author_id), page, limit, "createdAt", "desc", SORT_FIELDS
    ))


@router.get("/{post_id}")
def get_post(post_id: str, db: Database = Depends(get_db)):
    """Thread with its replies. Every call counts one view."""
    post = content_service.increment(db, "forum", post_id, "views", NOT_FOUND)
    return {"success": True, "post": serialize_doc(_with_authors(db, post))}


@router.post("", status_code=201)
def create_post(
    data: ForumPostCreate,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    now = utcnow()
    doc = data.to_document()
    doc.update(content_service.author_fields(principal))
    doc.update({
        "isPinned": False,
        "isLocked": False,
        "views": 0,
        "likes": 0,
        "replies": [],
        "replyCount": 0,
        "createdAt": now,
        "updatedAt": now,
    })
    doc["_id"] = get_collection(db, "forum").insert_one(doc).inserted_id
    return {"success": True, "message": "Post created successfully", "post": serialize_doc(_with_authors(db, doc))}


@router.put("/{post_id}")
def update_post(
    post_id: str,
    data: ForumPostUpdate,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    changes = data.to_document(partial=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    existing = content_service.find_or_404(db, "forum", post_id, NOT_FOUND)
    if not content_service.can_edit(existing, principal):
        raise HTTPException(status_code=403, detail="Not authorized to edit this post")

    changes["updatedAt"] = utcnow()
    post = get_collection(db, "forum").find_one_and_update(
        {"_id": existing["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not post:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return {"success": True, "message": "Post updated successfully", "post": serialize_doc(_with_authors(db, post))}


@router.delete("/{post_id}")
def delete_post(
    post_id: str,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    existing = content_service.find_or_404(db, "forum", post_id, NOT_FOUND)
    if not content_service.can_edit(existing, principal):
        raise HTTPException(status_code=403, detail="Not authorized to delete this post")
    get_collection(db, "forum").delete_one({"_id": existing["_id"]})
    return {"success": True, "message": "Post deleted successfully"}


@router.post("/{post_id}/reply", status_code=201)
def reply_to_post(
    post_id: str,
    data: ForumReplyCreate,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    existing = content_service.find_or_404(db, "forum", post_id, NOT_FOUND)
    reply = {
        "_id": ObjectId(),
        "content": data.content,
        "likes": 0,
        "createdAt": utcnow(),
        **content_service.author_fields(principal),
    }
    post = get_collection(db, "forum").find_one_and_update(
        {"_id": existing["_id"], "isLocked": {"$ne": True}},
        {"$push": {"replies": reply}, "$inc": {"replyCount": 1}, "$set": {"updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not post:
        # locked between the read and the push counts as locked
        raise HTTPException(status_code=400, detail="This post is locked and cannot be replied to")

    replies = populate_authors(db, post.get("replies", []))
    return {"success": True, "message": "Reply added successfully", "replies": serialize_docs(replies)}


@router.post("/{post_id}/like")
def like_post(
    post_id: str,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    post = content_service.increment(db, "forum", post_id, "likes", NOT_FOUND)
    return {"success": True, "message": "Post liked successfully", "likes": post["likes"]}


@router.post("/{post_id}/reply/{reply_id}/like")
def like_reply(
    post_id: str,
    reply_id: str,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    existing = content_service.find_or_404(db, "forum", post_id, NOT_FOUND)
    rid = parse_object_id(reply_id)
    post = None
    if rid is not None:
        post = get_collection(db, "forum").find_one_and_update(
            {"_id": existing["_id"], "replies._id": rid},
            {"$inc": {"replies.$.likes": 1}},
            return_document=ReturnDocument.AFTER,
        )
    if not post:
        raise HTTPException(status_code=404, detail="Reply not found")

    likes = next(r["likes"] for r in post["replies"] if r["_id"] == rid)
    return {"success": True, "message": "Reply liked successfully", "likes": likes}


@router.put("/{post_id}/pin")
def toggle_pin(post_id: str, admin: dict = Depends(require_admin), db: Database = Depends(get_db)):
    pinned = _toggle(db, post_id, "isPinned")
    message = "Post pinned successfully" if pinned else "Post unpinned successfully"
    return {"success": True, "message": message, "isPinned": pinned}


@router.put("/{post_id}/lock")
def toggle_lock(post_id: str, admin: dict = Depends(require_admin), db: Database = Depends(get_db)):
    locked = _toggle(db, post_id, "isLocked")
    message = "Post locked successfully" if locked else "Post unlocked successfully"
    return {"success": True, "message": message, "isLocked": locked}
