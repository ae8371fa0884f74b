"""Core application components.

This module provides the foundational components for the finance widget:
- Application settings and configuration
- Durable storage of the delegated Xero credential
"""
