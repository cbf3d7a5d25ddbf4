"""ThiQaX document verification and KYC workflow service."""

__version__ = "1.0.0"
