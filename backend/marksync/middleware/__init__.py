# Middleware package init
"""
MarkSync Backend — Middleware Package
=======================================

Middleware Chain (order matters):
    Request → [CORS] → [Request ID] → [Rate Limit] → [Access Log] → [GZip] → Route

    CORS is outermost so rejections still carry CORS headers for the
    extension. Request ID runs next so that rate-limit rejections and access log lines
    both carry the correlation ID.
"""
