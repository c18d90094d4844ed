"""
bandgo - Band formation and musician collaboration core.

Owns every domain entity of the platform (users, band requests,
applications, bands, rehearsals and polls, songs, tasks, events and
registrations, feed, notifications, chat) and enforces the invariants and
state transitions around them. Rendering, routing and concrete persistence
technology are collaborators plugged in through the application ports.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
