"""
Schemas module - Request/Response schemas for API endpoints.

MongoDB documents stay plain dicts inside the services; these models are the
API contract (what the client sends / receives), camelCase on the wire.
"""
