"""
SponsorConnect backend package.

This package provides a FastAPI application over a pluggable storage layer
(in-memory, flat JSON files or SQLAlchemy) for the creator sponsorship
marketplace, plus the Telegram bot that links into the mini app.
"""
