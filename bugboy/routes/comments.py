"""
/api/comments -- Threaded comments on products, users and orders.

Entity ids are compared as strings regardless of entity type. Content is
HTML-escaped before it is stored, so it can be dropped into a page as-is.
Reply trees are built from parent_id links with a depth cap and a visited
set, so a bad link can neither loop forever nor blow the stack.
"""

import html
import logging
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, Query

from bugboy.capture import with_error_capture
from bugboy.deps import get_store
from bugboy.errors import BadRequest, Conflict, Forbidden, NotFound
from bugboy.models.schemas import CommentCreate, CommentUpdate, EntityType
from bugboy.responses import ok
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_REPLY_DEPTH = 10

SORT_KEYS = {
    "newest": (lambda c: c["created_at"], True),
    "oldest": (lambda c: c["created_at"], False),
    "popular": (lambda c: c["likes"], True),
}


def shape_comment(c: dict, replies: list[dict] | None = None) -> dict:
    return {
        "id": c["id"],
        "parentId": c.get("parent_id"),
        "entityType": c["entity_type"],
        "entityId": c["entity_id"],
        "authorId": c["author_id"],
        "content": c["content"],
        "createdAt": c["created_at"],
        "updatedAt": c.get("updated_at"),
        "likes": c["likes"],
        "replies": replies or [],
    }


def build_reply_tree(
    parent_id: str,
    by_parent: dict[str, list[dict]],
    depth: int = 0,
    seen: set[str] | None = None,
) -> list[dict]:
    seen = seen if seen is not None else {parent_id}
    if depth >= MAX_REPLY_DEPTH:
        return []

    tree = []
    for reply in sorted(by_parent.get(parent_id, []), key=lambda c: c["created_at"]):
        if reply["id"] in seen:
            continue
        seen.add(reply["id"])
        tree.append(shape_comment(reply, build_reply_tree(reply["id"], by_parent, depth + 1, seen)))
    return tree


def descendants(root_id: str, comments: list[dict]) -> list[str]:
    """Ids of every reply below root_id (not including root_id)."""
    by_parent: dict[str, list[str]] = {}
    for c in comments:
        if c.get("parent_id"):
            by_parent.setdefault(c["parent_id"], []).append(c["id"])

    found: list[str] = []
    stack = [root_id]
    while stack:
        for child in by_parent.get(stack.pop(), []):
            if child not in found and child != root_id:
                found.append(child)
                stack.append(child)
    return found


@router.get(
    "/api/comments",
    summary="List comments for an entity",
    tags=["Comments"],
)
@with_error_capture
async def list_comments(
    entity_type: EntityType | None = Query(default=None, alias="entityType"),
    entity_id: str | None = Query(default=None, alias="entityId"),
    replies: bool = Query(default=True, description="Nest replies under their parents."),
    sort: Literal["newest", "oldest", "popular"] = Query(default="newest"),
    store: MockStore = Depends(get_store),
):
    if not entity_type or not entity_id:
        raise BadRequest("entityType and entityId are required")

    rows = await store.comments.find_many(where={"entity_type": entity_type, "entity_id": entity_id})
    rows = rows or []

    roots = [c for c in rows if c.get("parent_id") is None]
    key, reverse = SORT_KEYS[sort]
    roots.sort(key=key, reverse=reverse)

    by_parent: dict[str, list[dict]] = {}
    if replies:
        for c in rows:
            if c.get("parent_id"):
                by_parent.setdefault(c["parent_id"], []).append(c)

    comments = [shape_comment(c, build_reply_tree(c["id"], by_parent)) for c in roots]

    return ok({
        "comments": comments,
        "total": len(comments),
        "entityType": entity_type,
        "entityId": entity_id,
    })


@router.post(
    "/api/comments",
    summary="Post a comment",
    description="Content must be 1-1000 characters. Replies must target a comment on the same entity.",
    tags=["Comments"],
)
@with_error_capture
async def create_comment(
    body: CommentCreate,
    store: MockStore = Depends(get_store),
):
    author = await store.users.find_unique(body.author_id)
    if author is None:
        raise NotFound("Author not found", authorId=body.author_id)

    if body.parent_id:
        parent = await store.comments.find_unique(body.parent_id)
        if parent is None:
            raise NotFound("Parent comment not found", parentId=body.parent_id)
        if parent["entity_type"] != body.entity_type or parent["entity_id"] != body.entity_id:
            raise BadRequest("Parent comment belongs to a different entity")

    comment = await store.comments.create({
        "parent_id": body.parent_id,
        "entity_type": body.entity_type,
        "entity_id": body.entity_id,
        "author_id": body.author_id,
        "content": html.escape(body.content),
        "created_at": datetime.now(timezone.utc),
        "updated_at": None,
        "likes": 0,
        "liked_by": [],
    })

    return ok(shape_comment(comment))


@router.patch(
    "/api/comments",
    summary="Like or edit a comment",
    description="action=like (once per user) or action=edit (author only).",
    tags=["Comments"],
)
@with_error_capture
async def update_comment(
    body: CommentUpdate,
    store: MockStore = Depends(get_store),
):
    comment = await store.comments.find_unique(body.comment_id)
    if comment is None:
        raise NotFound("Comment not found", commentId=body.comment_id)

    if not body.user_id:
        raise BadRequest("userId is required")

    if body.action == "like":
        if body.user_id in comment["liked_by"]:
            raise Conflict("Comment already liked by this user")
        updated = await store.comments.update(comment["id"], {
            "likes": comment["likes"] + 1,
            "liked_by": comment["liked_by"] + [body.user_id],
        })
        return ok({"likes": updated["likes"]})

    # edit
    if not body.content:
        raise BadRequest("Content is required for edit")
    if comment["author_id"] != body.user_id:
        raise Forbidden("Not authorized to edit this comment")

    updated = await store.comments.update(comment["id"], {
        "content": html.escape(body.content),
        "updated_at": datetime.now(timezone.utc),
    })
    return ok(shape_comment(updated))


@router.delete(
    "/api/comments",
    summary="Delete a comment",
    description="Author or admin only. Replies are deleted with their parent.",
    tags=["Comments"],
)
@with_error_capture
async def delete_comment(
    comment_id: str | None = Query(default=None, alias="id"),
    user_id: str | None = Query(default=None, alias="userId"),
    store: MockStore = Depends(get_store),
):
    if not comment_id:
        raise BadRequest("Comment ID is required")
    if not user_id:
        raise BadRequest("userId is required")

    comment = await store.comments.find_unique(comment_id)
    if comment is None:
        raise NotFound("Comment not found", commentId=comment_id)

    if comment["author_id"] != user_id:
        user = await store.users.find_unique(user_id)
        if user is None or user["role"] != "admin":
            raise Forbidden("Not authorized to delete this comment")

    doomed = [comment_id, *descendants(comment_id, store.comments.all())]
    for cid in doomed:
        await store.comments.delete(cid)
    logger.info("Comment %s deleted by %s (%d replies removed)", comment_id, user_id, len(doomed) - 1)

    return ok({"deleted": len(doomed)}, message="Comment deleted")
