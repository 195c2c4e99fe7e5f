from studentnest.services.payment.payment_confirmation_service import PaymentConfirmationService

__all__ = ["PaymentConfirmationService"]
