"""
Negotiation repository.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from studentnest.models.enums import NegotiationStatus
from studentnest.models.negotiation import Negotiation
from studentnest.repositories.base_repository import BaseRepository, PaginatedResult


class NegotiationRepository(BaseRepository[Negotiation]):

    def __init__(self, db: Session):
        super().__init__(Negotiation, db)

    def find_open_for_student_listing(
        self,
        student_id: str,
        listing_id: str,
        now: datetime,
    ) -> Optional[Negotiation]:
        """Non-expired pending/countered negotiation for this student and listing."""
        return (
            self.db.query(Negotiation)
            .filter(
                Negotiation.student_id == student_id,
                Negotiation.listing_id == listing_id,
                Negotiation.status.in_(NegotiationStatus.open_statuses()),
                Negotiation.expires_at >= now,
            )
            .first()
        )

    def list_for_participant(
        self,
        user_id: str,
        status: Optional[NegotiationStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> PaginatedResult[Negotiation]:
        query = self.db.query(Negotiation).filter(
            or_(Negotiation.student_id == user_id, Negotiation.owner_id == user_id)
        )
        if status is not None:
            query = query.filter(Negotiation.status == status)
        query = query.order_by(Negotiation.created_at.desc())
        return self.paginate_query(query, page=page, limit=limit)
