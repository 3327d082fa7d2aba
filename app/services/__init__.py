"""
Services module for the live-score synchronization loop.

- live_scores: provider clients, per-sport mappers, the match updater,
  upcoming-match discovery, the change notifier and the sync orchestrator
"""
