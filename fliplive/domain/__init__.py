"""
Domain layer containing core business logic and domain services.

Submodules:
- live: Live sessions (seats, viewers, host moderation) and the ghost reaper.
- economy: Balances, ledger transactions, levels and entitlements.
- utils: Domain-specific utilities (e.g., ID generation).
"""
