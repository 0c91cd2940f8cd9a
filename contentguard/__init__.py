"""contentguard — prompt moderation with violation tracking and escalation."""

__version__ = "0.1.0"
