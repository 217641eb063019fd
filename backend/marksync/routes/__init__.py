# Routes package init
"""
MarkSync Backend — API Routes Package
=======================================

Route Inventory:
    - auth.py:    POST /api/register        (create account)
                  POST /api/login           (username or email + password)
    - sync.py:    POST /api/sync/bookmarks  (full-replace bookmark sync)
    - health.py:  GET  /health              (service health check)

Routes stay thin: extract the body, call a service, return its result.
Errors propagate to the global handlers in main.py.
"""
