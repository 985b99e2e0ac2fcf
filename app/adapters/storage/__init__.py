"""Storage adapters for user submissions.

Flat JSON files today; the collection interface allows a different backend
later without touching the services or routes.
"""
