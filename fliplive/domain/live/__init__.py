"""
Live streaming domain logic.

Includes:
- session: Live session registry (lifecycle, seats, viewers, host actions, gifts).
- ghost: Periodic sweep that marks and reclaims abandoned party sessions.
"""
