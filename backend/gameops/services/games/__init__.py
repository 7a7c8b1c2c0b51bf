"""Scorekeeping domain: game aggregate, transitions, box score and live sessions.

Nothing in here touches HTTP or the database; routes and socket handlers
import from this package, and the storage layer converts to and from the
``state`` dataclasses.
"""
