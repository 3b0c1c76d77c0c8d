"""
Comments (testimonials, feedback) and gallery photo records
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.core.errors import NotFoundError, ValidationError
from app.services.store import RowStore, eq

logger = logging.getLogger(__name__)

THANK_YOU_NOTE = "Thank You Note"


class CommentService:
    def __init__(self, store: RowStore):
        self.store = store

    def create_comment(
        self,
        user_name: str,
        message: str,
        attended_date: Optional[str] = None,
        table_type: Optional[str] = None,
        comment_type: str = THANK_YOU_NOTE,
    ) -> Dict:
        if not (user_name or "").strip():
            raise ValidationError("Please enter your name.", field="user_name")
        if not (message or "").strip():
            raise ValidationError("Please enter a message.", field="message")

        row = {
            "id": str(uuid.uuid4()),
            "user_name": user_name.strip(),
            "message": message.strip(),
            "attended_date": attended_date or None,
            "table_type": table_type or None,
            "comment_type": comment_type or THANK_YOU_NOTE,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        return self.store.insert("comments", row)

    def list_comments(self, comment_type: Optional[str] = None, limit: Optional[int] = None) -> List[Dict]:
        """Newest first"""
        filters = [eq("comment_type", comment_type)] if comment_type else []
        return self.store.select("comments", filters, order_by=("-created_at",), limit=limit)

    def delete_comment(self, comment_id: str) -> None:
        if not self.store.delete("comments", {"id": comment_id}):
            raise NotFoundError("Comment")


class GalleryService:
    """Photo records only; the image bytes live in external storage"""

    def __init__(self, store: RowStore):
        self.store = store

    def list_photos(self) -> List[Dict]:
        return self.store.select("gallery_photos", order_by=("-date",))

    def add_photo(self, url: str, date: str, caption: str = "") -> Dict:
        if not (url or "").strip():
            raise ValidationError("Photo URL is required", field="url")
        row = {"id": str(uuid.uuid4()), "url": url.strip(), "date": date, "caption": caption or ""}
        self.store.insert("gallery_photos", row)
        logger.info(f"Added gallery photo {row['id']}")
        return row

    def delete_photo(self, photo_id: str) -> None:
        if not self.store.delete("gallery_photos", {"id": photo_id}):
            raise NotFoundError("Photo")
