#!/usr/bin/env python3
"""
Seed script: creates a small demo graph through the SocialGraph engine.

Creates:
  • 10 accounts
  • A follow graph (each account follows 4 others)
  • 3 posts per account
  • Some likes and comments across posts, each deriving a notification

Run against whatever store the environment configures:
  DATABASE_URL=sqlite+aiosqlite:///./socialgraph.db python scripts/seed_data.py

All IDs are printed so you can use them in curl commands.
"""
import argparse
import asyncio
import logging
import random

from socialgraph.config import settings
from socialgraph.engine import SocialGraph
from socialgraph.errors import UniquenessError
from socialgraph.schemas import EntityKind

logger = logging.getLogger("seed")

BASE_ACCOUNTS = [
    ("alice_ai", "Alice", "Chen"),
    ("bob_builder", "Bob", "Martinez"),
    ("carol_codes", "Carol", "Singh"),
    ("dave_designs", "Dave", "Kim"),
    ("eve_engineer", "Eve", "Johnson"),
    ("frank_feeds", "Frank", "Williams"),
    ("grace_graphs", "Grace", "Li"),
    ("henry_hpc", "Henry", "Brown"),
    ("iris_infra", "Iris", "Davis"),
    ("jack_ml", "Jack", "Wilson"),
]

SAMPLE_POSTS = [
    "Just shipped a new feature to production 🚀 Zero downtime deploys are beautiful.",
    "Graph invariants are easier to keep when every write goes through one validator.",
    "TIL: a unique index beats an application-level existence check every time.",
    "Followers and following are two lists. Keeping them in sync is the whole game.",
    "Notifications are just derived rows. Derive them once, from the mutation.",
    "280 characters is plenty if you delete the adjectives.",
    "Dangling references are fine as long as someone owns the cleanup.",
    "Atomic array appends: the difference between 2 likes and 1 like.",
]

SAMPLE_COMMENTS = [
    "Great point!",
    "Totally agree 👏",
    "Could you share more details?",
    "@alice_ai you should see this #graphs",
]


async def seed(graph: SocialGraph, likes_per_post: int) -> None:
    # ── Create accounts ──────────────────────────────────────────────────
    print("Creating accounts...")
    account_ids: list[str] = []
    for username, first_name, last_name in BASE_ACCOUNTS:
        try:
            account = await graph.register_account(
                {
                    "external_id": f"seed_{username}",
                    "email": f"{username}@example.com",
                    "first_name": first_name,
                    "last_name": last_name,
                    "username": username,
                }
            )
        except UniquenessError:
            existing = await graph.entities.find_many(EntityKind.ACCOUNT, {"username": username})
            account = existing[0]
            print(f"  = {username} already exists ({account.id})")
        else:
            print(f"  ✓ {username} ({account.id})")
        account_ids.append(account.id)

    # ── Create follow graph ───────────────────────────────────────────────
    print("\nCreating follow relationships...")
    for follower_id in account_ids:
        followees = random.sample([a for a in account_ids if a != follower_id], k=4)
        for followee_id in followees:
            await graph.follow(follower_id, followee_id)
    print("  ✓ Follow graph created")

    # ── Create posts ──────────────────────────────────────────────────────
    print("\nCreating posts...")
    post_ids: list[str] = []
    for idx, account_id in enumerate(account_ids):
        for offset in range(3):
            content = SAMPLE_POSTS[(idx + offset) % len(SAMPLE_POSTS)]
            post = await graph.publish_post({"user": account_id, "content": content})
            post_ids.append(post.id)
    print(f"  ✓ {len(post_ids)} posts created")

    # ── Likes and comments ────────────────────────────────────────────────
    print("\nAdding likes and comments...")
    likes = comments = 0
    for post_id in post_ids:
        for account_id in random.sample(account_ids, k=random.randint(0, likes_per_post)):
            await graph.like_post(account_id, post_id)
            likes += 1
        if random.random() < 0.5:
            await graph.comment_on_post(
                random.choice(account_ids), post_id, random.choice(SAMPLE_COMMENTS)
            )
            comments += 1
    print(f"  ✓ {likes} likes, {comments} comments added")

    # ── Print summary ─────────────────────────────────────────────────────
    first = account_ids[0]
    inbox = await graph.notifications_for(first)
    print("\n" + "=" * 60)
    print(f"Seed complete! {BASE_ACCOUNTS[0][0]} has {len(inbox)} notifications.\n")
    print("# Start the API and try:")
    print(f"  curl -s 'http://localhost:8000/notifications/?account_id={first}' | python3 -m json.tool")
    print(f"  curl -s 'http://localhost:8000/accounts/{first}/followers' | python3 -m json.tool")
    print("=" * 60)


async def main(likes_per_post: int) -> None:
    graph = SocialGraph.from_settings(settings)
    await graph.start()
    try:
        await seed(graph, likes_per_post)
    finally:
        await graph.stop()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the social graph")
    parser.add_argument("--likes-per-post", type=int, default=5, help="Maximum likes per post")
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level)
    asyncio.run(main(args.likes_per_post))
