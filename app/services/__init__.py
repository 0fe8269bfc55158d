"""
Business logic for the todo service.

Architecture: request validation → status engine → pagination planning →
statistics, with storage access in ``app.db_handlers``.
"""
