"""
Sample sponsorship listings for demos and local development.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sponsorconnect.db import DbClient
from sponsorconnect.records import SponsorshipRecord, utcnow

logger = logging.getLogger(__name__)

_BANNER = "https://images.unsplash.com/{}?ixlib=rb-4.0.3&auto=format&fit=crop&w=800&h=200"

SAMPLE_SPONSORSHIPS = (
    {
        "title": "FitTrack Pro - Fitness App Launch",
        "description": (
            "Looking for fitness influencers to promote our new workout tracking "
            "app with advanced features and user-friendly interface."
        ),
        "banner_image": _BANNER.format("photo-1571019613454-1cb2f99b2d8b"),
        "budget_min": 25000,
        "budget_max": 50000,
        "min_followers": 10000,
        "category": "Fitness & Health",
        "days_open": 5,
    },
    {
        "title": "GlowUp Skincare Collection",
        "description": (
            "Beauty creators wanted for our new organic skincare line launch "
            "with natural ingredients and cruelty-free products."
        ),
        "banner_image": _BANNER.format("photo-1596462502278-27bfdc403348"),
        "budget_min": 15000,
        "budget_max": 30000,
        "min_followers": 5000,
        "category": "Beauty & Fashion",
        "days_open": 12,
    },
    {
        "title": "TechFlow Wireless Headphones",
        "description": (
            "Looking for tech reviewers to showcase our premium wireless "
            "headphones with advanced noise cancellation and superior sound quality."
        ),
        "banner_image": _BANNER.format("photo-1560472354-b33ff0c44a43"),
        "budget_min": 20000,
        "budget_max": 40000,
        "min_followers": 15000,
        "category": "Technology",
        "days_open": 5,
    },
)


def seed_sample_sponsorships(
    db: DbClient, now: Optional[datetime] = None
) -> list[SponsorshipRecord]:
    """Insert the sample listings unless active listings already exist."""
    if db.list_active_sponsorships():
        logger.info("Active sponsorships present; skipping sample data")
        return []

    now = now or utcnow()
    created = []
    for sample in SAMPLE_SPONSORSHIPS:
        fields = {k: v for k, v in sample.items() if k != "days_open"}
        fields["deadline"] = now + timedelta(days=sample["days_open"])
        fields["is_active"] = True
        created.append(db.create_sponsorship(fields))
    logger.info("Seeded %d sample sponsorships", len(created))
    return created
