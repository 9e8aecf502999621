"""Seed script: load a handful of sample bugs through the service layer.

Usage:
    python scripts/seed_bugs.py

Set DATABASE_URL in your environment or .env before running. Each bug goes
through the same sanitize/validate path as a POST /api/bugs request.
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from bug_tracker import service
from bug_tracker.db.repository import BugRepository
from bug_tracker.db.session import async_session, engine, init_db

BUGS = [
    {
        "title": "Login button unresponsive on Safari",
        "description": "Clicking the login button on Safari 17 does nothing. No network request is sent.",
        "severity": "high",
        "assignedTo": "frontend-team",
        "priority": 2,
        "reproducible": True,
        "tags": ["auth", "safari", "ui"],
    },
    {
        "title": "Dashboard totals off by one",
        "description": "The total bug count on the dashboard excludes the most recently created bug.",
        "severity": "medium",
        "status": "in-progress",
        "tags": ["dashboard"],
    },
    {
        "title": "Data loss when saving long descriptions",
        "description": "Descriptions close to the 1000 character limit are truncated on save.",
        "severity": "critical",
        "priority": 1,
        "reproducible": True,
    },
    {
        "title": "Typo in footer",
        "description": "The footer reads 'Bug Traker' instead of 'Bug Tracker'.",
        "severity": "low",
        "status": "resolved",
        "priority": 5,
        "tags": ["copy"],
    },
]


async def seed():
    await init_db()
    try:
        async with async_session() as session:
            repo = BugRepository(session)
            for payload in BUGS:
                await service.create_bug(repo, payload)
        print(f"Seeded {len(BUGS)} bugs.")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
