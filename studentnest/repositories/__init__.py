from studentnest.repositories.base_repository import BaseRepository, PageInfo, PaginatedResult
from studentnest.repositories.booking_repository import BookingRepository
from studentnest.repositories.listing_repository import ListingRepository
from studentnest.repositories.negotiation_repository import NegotiationRepository
from studentnest.repositories.payment_transaction_repository import PaymentTransactionRepository

__all__ = [
    "BaseRepository",
    "PageInfo",
    "PaginatedResult",
    "BookingRepository",
    "ListingRepository",
    "NegotiationRepository",
    "PaymentTransactionRepository",
]
