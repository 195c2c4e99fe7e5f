"""
Payment transaction repository.
"""

from typing import Optional

from sqlalchemy.orm import Session

from studentnest.models.payment_transaction import PaymentTransaction
from studentnest.repositories.base_repository import BaseRepository


class PaymentTransactionRepository(BaseRepository[PaymentTransaction]):

    def __init__(self, db: Session):
        super().__init__(PaymentTransaction, db)

    def find_by_order_id(self, order_id: str) -> Optional[PaymentTransaction]:
        return (
            self.db.query(PaymentTransaction)
            .filter(PaymentTransaction.order_id == order_id)
            .first()
        )
