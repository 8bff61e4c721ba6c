"""
Event System - Synchronous observer signals.

Provides:
- Signal: Simple observer pattern for sync notifications
  (global error stream, settings changes)
"""
from .observer import Signal


__all__ = ["Signal"]
