"""Helpdesk ticketing backend.

The transactional core lives in ``helpdesk.services``; ``helpdesk.main``
wires it into a FastAPI application.
"""
