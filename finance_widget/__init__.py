"""Helpdesk-embedded Xero finance panel."""

__version__ = "0.1.0"
