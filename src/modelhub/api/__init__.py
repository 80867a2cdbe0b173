"""API layer: canonical operation surface for callers (controllers, CLI).

Key rules:

1. No query construction here - only call the repository
2. Plain values in (kind, page, limit, search, owner id, payload dicts)
3. Return PageResult models or plain record dicts
4. Pagination is 1-based here; the repository works in skip/take
"""
