from studentnest.services.booking.booking_reconciler import BookingReconciler
from studentnest.services.booking.inventory_guard import InventoryGuard, ReservationToken

__all__ = ["BookingReconciler", "InventoryGuard", "ReservationToken"]
