"""
Comments service routes: post, list, and delete comments.
"""

import logging
from typing import Tuple

from flask import Blueprint, g, request, Response

from commentboard.auth_service.policy import authenticate_token, current_user_id, optional_auth
from commentboard.comments_service import store
from commentboard.responses import success_response

comments_bp = Blueprint("comments", __name__)


@comments_bp.before_request
def before_request() -> None:
    logging.info(f"[Comments] Incoming {request.method} {request.full_path.rstrip('?')}")


@comments_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Comments] Response {response.status}")
    return response


def _page_response(message: str, result: dict) -> Tuple[Response, int]:
    viewer_id = current_user_id()
    comments = [store.serialize_comment(row, viewer_id) for row in result["comments"]]
    return success_response(message, {"comments": comments, "pagination": result["pagination"]})


@comments_bp.route("", methods=["POST"])
@authenticate_token
def create_comment() -> Tuple[Response, int]:
    """
    Post a comment as the authenticated user.

    Expects JSON: { "content": str } (1-500 characters after trimming)

    Returns:
        201: { comment }
        400: Missing, blank, or overlong content.
        401: Missing or invalid token.
    """
    data = request.get_json(silent=True)
    content = data.get("content") if isinstance(data, dict) else None

    row = store.create_comment(g.current_user, content)

    return success_response(
        "Comment posted successfully",
        {"comment": store.serialize_comment(row, g.current_user["user_id"])},
        201,
    )


@comments_bp.route("", methods=["GET"])
@optional_auth
def list_comments() -> Tuple[Response, int]:
    """
    List active comments, newest first.

    Query: page (default 1), limit (default 10, capped)

    Returns:
        200: { comments, pagination }
    """
    page, limit = store.parse_pagination(request.args)
    result = store.list_comments(page=page, limit=limit)
    return _page_response("Comments retrieved successfully", result)


@comments_bp.route("/user/<int:user_id>", methods=["GET"])
@optional_auth
def list_user_comments(user_id: int) -> Tuple[Response, int]:
    """
    List one user's active comments, newest first.

    Returns:
        200: { comments, pagination } (empty for unknown users)
    """
    page, limit = store.parse_pagination(request.args)
    result = store.list_comments(author_id=user_id, page=page, limit=limit)
    return _page_response("User comments retrieved successfully", result)


@comments_bp.route("/<int:comment_id>", methods=["DELETE"])
@authenticate_token
def delete_comment(comment_id: int) -> Tuple[Response, int]:
    """
    Soft-delete a comment. Only its author may delete it.

    Returns:
        200: Deleted.
        401: Missing or invalid token.
        403: Caller is not the author.
        404: Comment not found.
    """
    store.soft_delete_comment(comment_id, g.current_user["user_id"])
    return success_response("Comment deleted successfully")
