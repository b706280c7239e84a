from typing import Any

from bson import ObjectId


def serialize(value: Any) -> Any:
    """Make a MongoDB document JSON friendly: ObjectIds become strings, passwords are dropped."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize(item) for key, item in value.items() if key != "password"}
    if isinstance(value, list):
        return [serialize(item) for item in value]
    return value


def success(data: Any = None, **extra) -> dict:
    body = {"success": True}
    body.update(extra)
    if data is not None:
        body["data"] = serialize(data)
    return body


class Page:
    """Offset pagination from ``page``/``limit`` query parameters."""

    def __init__(self, page: int = 1, limit: int = 10):
        self.page = page if page and page > 0 else 1
        self.limit = limit if limit and limit > 0 else 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def links(self, total: int) -> dict:
        pagination = {}
        if self.skip + self.limit < total:
            pagination["next"] = {"page": self.page + 1, "limit": self.limit}
        if self.skip > 0:
            pagination["prev"] = {"page": self.page - 1, "limit": self.limit}
        return pagination
