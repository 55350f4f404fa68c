"""LeadCoach - leadership coaching chat service and session client."""

__version__ = "1.0.0"
