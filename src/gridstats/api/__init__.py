"""API module for gridstats.

API layer:
- Validates inputs, reads/writes statistics through the repository
- Returns JSON payloads for the puzzle UI
- Forbidden: solving logic, choosing which attempt is included
"""
