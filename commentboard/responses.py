"""
JSON envelope helpers.

Every API response has the shape:
    { "success": bool, "message": str, "data"?: object, "errors"?: [str] }
"""

from typing import Any, Dict, List, Optional, Tuple

from flask import jsonify, Response


def success_response(message: str, data: Optional[Dict[str, Any]] = None, status: int = 200) -> Tuple[Response, int]:
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def error_response(message: str, status: int, errors: Optional[List[str]] = None) -> Tuple[Response, int]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return jsonify(body), status
