# Conversation handles
# Acceptance opens a thread between the two parties; message delivery lives elsewhere.

import logging
from typing import Optional

from sqlalchemy.orm import Session

from database.collaboration_models import Conversation

logger = logging.getLogger(__name__)


class ConversationService:

    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self, brand_id: str, creator_id: str, request_id: Optional[str] = None) -> Conversation:
        """Return the thread for this (brand, creator, request) triple, creating it once."""
        conversation = self.db.query(Conversation).filter(
            Conversation.brand_id == brand_id,
            Conversation.creator_id == creator_id,
            Conversation.request_id == request_id,
        ).first()
        if conversation:
            return conversation

        conversation = Conversation(brand_id=brand_id, creator_id=creator_id, request_id=request_id)
        self.db.add(conversation)
        self.db.flush()
        logger.info(f"Opened conversation {conversation.id} for request {request_id}")
        return conversation
