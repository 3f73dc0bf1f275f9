"""
Comment store.

Comments are never removed from the database: deleting one clears its
`is_active` flag, and every listing filters on that flag.
"""

import logging
import math
import os
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from commentboard.auth_service.users import full_name
from commentboard.database.db_connection import db_cursor
from commentboard.errors import ForbiddenError, NotFoundError, ValidationError

load_dotenv()

# --- CONSTANTS FOR VALIDATION ---
CONTENT_MAX_LENGTH = 500
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = int(os.getenv("COMMENTS_MAX_PAGE_SIZE", 100))

COMMENT_COLUMNS = """
    c.comment_id, c.content, c.author_id, c.author_name, c.is_active,
    c.created_at, c.updated_at,
    u.username AS author_username,
    u.first_name AS author_first_name,
    u.last_name AS author_last_name
"""


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_comment(row: Dict[str, Any], viewer_id: Optional[int] = None) -> Dict[str, Any]:
    """
    Outward-facing representation of a comment row.

    `isOwner` is only present when the viewer is known.
    """
    comment = {
        "id": row["comment_id"],
        "content": row["content"],
        "author": {
            "id": row["author_id"],
            "username": row.get("author_username"),
            "firstName": row.get("author_first_name"),
            "lastName": row.get("author_last_name"),
        },
        "authorName": row["author_name"],
        "isActive": row["is_active"],
        "createdAt": _iso(row.get("created_at")),
        "updatedAt": _iso(row.get("updated_at")),
    }
    if viewer_id is not None:
        comment["isOwner"] = row["author_id"] == viewer_id
    return comment


# --- PAGINATION ---
def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def parse_pagination(args: Mapping[str, Any]) -> Tuple[int, int]:
    """
    Read `page` and `limit` from query arguments.

    Absent, non-numeric, or non-positive values fall back to 1 and 10;
    `limit` is capped at MAX_PAGE_SIZE.
    """
    page = _positive_int(args.get("page"), DEFAULT_PAGE)
    limit = min(_positive_int(args.get("limit"), DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
    return page, limit


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit)
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalComments": total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


# --- SQL HELPERS ---
def insert_comment(author_id: int, author_name: str, content: str) -> Dict[str, Any]:
    sql = f"""
        WITH c AS (
            INSERT INTO comments (content, author_id, author_name)
            VALUES (%s, %s, %s)
            RETURNING *
        )
        SELECT {COMMENT_COLUMNS}
        FROM c
        JOIN users u ON u.user_id = c.author_id;
    """
    with db_cursor() as cur:
        cur.execute(sql, (content, author_id, author_name))
        return dict(cur.fetchone())


def count_active_comments(author_id: Optional[int] = None) -> int:
    sql = "SELECT COUNT(*) AS total FROM comments c WHERE c.is_active = TRUE"
    params: List[Any] = []
    if author_id is not None:
        sql += " AND c.author_id = %s"
        params.append(author_id)

    with db_cursor() as cur:
        cur.execute(sql + ";", params)
        return cur.fetchone()["total"]


def fetch_active_comments(author_id: Optional[int], limit: int, offset: int) -> List[Dict[str, Any]]:
    sql = f"""
        SELECT {COMMENT_COLUMNS}
        FROM comments c
        JOIN users u ON u.user_id = c.author_id
        WHERE c.is_active = TRUE
    """
    params: List[Any] = []
    if author_id is not None:
        sql += " AND c.author_id = %s"
        params.append(author_id)

    sql += " ORDER BY c.created_at DESC, c.comment_id DESC LIMIT %s OFFSET %s;"
    params.extend([limit, offset])

    with db_cursor() as cur:
        cur.execute(sql, params)
        return [dict(r) for r in cur.fetchall()]


def get_comment(comment_id: int) -> Optional[Dict[str, Any]]:
    """Direct lookup by id. Soft-deleted comments are returned too."""
    sql = f"""
        SELECT {COMMENT_COLUMNS}
        FROM comments c
        JOIN users u ON u.user_id = c.author_id
        WHERE c.comment_id = %s;
    """
    with db_cursor() as cur:
        cur.execute(sql, (comment_id,))
        row = cur.fetchone()
    return dict(row) if row else None


def deactivate_comment(comment_id: int) -> None:
    sql = """
        UPDATE comments
        SET is_active = FALSE, updated_at = CURRENT_TIMESTAMP
        WHERE comment_id = %s;
    """
    with db_cursor() as cur:
        cur.execute(sql, (comment_id,))


# --- SERVICE OPERATIONS ---
def create_comment(author: Dict[str, Any], content: Any) -> Dict[str, Any]:
    """
    Post a comment as `author` (a user row).

    The author's current full name is copied onto the comment and is not
    updated if the author later changes their name.

    Raises:
        ValidationError: Content missing, blank, or over 500 characters.
    """
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Comment content is required")

    content = content.strip()
    if len(content) > CONTENT_MAX_LENGTH:
        raise ValidationError(
            "Validation failed",
            [f"Comment cannot exceed {CONTENT_MAX_LENGTH} characters"],
        )

    return insert_comment(author["user_id"], full_name(author), content)


def list_comments(author_id: Optional[int] = None, page: int = DEFAULT_PAGE,
                  limit: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
    """
    Return one page of active comments, newest first.

    Pages past the last one come back empty without querying for rows.

    Returns:
        dict: { "comments": [rows], "pagination": {...} }
    """
    total = count_active_comments(author_id)
    pagination = build_pagination(page, limit, total)

    if page > max(pagination["totalPages"], 1):
        return {"comments": [], "pagination": pagination}

    rows = fetch_active_comments(author_id, limit, (page - 1) * limit)
    return {"comments": rows, "pagination": pagination}


def soft_delete_comment(comment_id: int, requester_id: int) -> None:
    """
    Hide a comment from all listings. Only its author may do this.

    Deleting an already deleted comment again succeeds without a write.

    Raises:
        NotFoundError: No such comment.
        ForbiddenError: The requester is not the author.
    """
    comment = get_comment(comment_id)
    if not comment:
        raise NotFoundError("Comment not found")

    if comment["author_id"] != requester_id:
        raise ForbiddenError("You can only delete your own comments")

    if not comment["is_active"]:
        return

    deactivate_comment(comment_id)
    logging.info(f"[Comments] Comment {comment_id} soft-deleted by user {requester_id}")
