"""
Propose and Commit Example — One Story Root, Two Versions
===========================================================

This example walks the workflow the HTTP layer drives:

    1. Propose a Story Root from free-form input (no history → CREATE)
    2. Commit it with no concurrency token            → version 1
    3. Propose a change (history exists → MERGE)
    4. Commit it with version 1 as the token          → version 2
    5. Show that a stale token is rejected

The completion engine is the mock provider with queued responses, so no
API key is needed.

Usage:
    python examples/propose_and_commit.py
"""

from __future__ import annotations

import asyncio

from storyforge.core.config import StoryForgeConfig
from storyforge.core.exceptions import ConflictError
from storyforge.core.models import RequestContext
from storyforge.facade import StoryForge
from storyforge.integrations.llm.mock import MockLLMProvider


async def main() -> None:
    """Run two propose/commit rounds and a stale commit."""
    provider = MockLLMProvider()
    provider.queue_json_response(
        {
            "story_root_id": "sr-lisbon",
            "genre": "Noir",
            "tone": "Bleak, rain-soaked",
            "thematic_pillars": "Corruption; redemption",
            "notes": "1947 Lisbon",
        }
    )
    provider.queue_json_response(
        {
            "story_root_id": "sr-lisbon",
            "genre": "Noir",
            "tone": "Bleak with flashes of gallows humour",
            "thematic_pillars": "Corruption; redemption",
            "notes": "1947 Lisbon",
        }
    )

    ctx = RequestContext(user_id="alice")

    async with StoryForge(StoryForgeConfig(), llm_provider=provider) as forge:
        service = forge.story_root

        proposal = await service.propose_merge(ctx, "A noir story set in 1947 Lisbon")
        v1 = await service.commit(ctx, proposal.proposal)
        print(f"Committed v1: {v1.version_id}")

        proposal = await service.propose_merge(ctx, "Add some gallows humour")
        print(f"Current tone : {proposal.current.tone}")
        print(f"Proposed tone: {proposal.proposal.tone}")
        v2 = await service.commit(ctx, proposal.proposal, expected_version_id=v1.version_id)
        print(f"Committed v2: {v2.version_id} (prior {v2.prior_version_id})")

        try:
            await service.commit(ctx, proposal.proposal, expected_version_id=v1.version_id)
        except ConflictError as exc:
            print(f"Stale commit rejected: {exc.message}")

        print()
        print("History (newest first):")
        for meta in await service.list_versions(ctx):
            print(f"  {meta.version_id}  {meta.timestamp.isoformat()}  env={meta.environment}")


if __name__ == "__main__":
    asyncio.run(main())
