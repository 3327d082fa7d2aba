"""
API routes.

- live_scores: stored matches, manual refresh and the match update WebSocket
- sync: sync health, scheduler status and manual discovery
"""
