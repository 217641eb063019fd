# Services package init
"""
MarkSync Backend — Services Layer
===================================

Service Inventory:
    - CredentialStore:     create / find-by-identifier for user records
    - BookmarkStore:       delete-by-owner and conflict-skip bulk insert
    - BookmarkSyncService: validates a sync and runs the replace atomically
    - AuthService:         registration and login (bcrypt)

Each module exposes a stateless singleton (credential_store, bookmark_store,
sync_service, auth_service); sessions and session factories are passed in
per call.
"""
