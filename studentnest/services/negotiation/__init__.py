from studentnest.services.negotiation.negotiation_service import NegotiationService

__all__ = ["NegotiationService"]
