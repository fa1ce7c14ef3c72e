"""
Helpers to turn MongoDB documents into JSON-serializable values.
"""

import base64
from typing import Any

from bson import ObjectId


def serialize_value(value: Any) -> Any:
    """Recursively convert ObjectId to str and raw bytes to base64."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, (bytes, bytearray)):
        # bson.Binary subclasses bytes; shows up in corrupted applicant records
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    return serialize_value(doc)


def serialize_docs(docs: list) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]
