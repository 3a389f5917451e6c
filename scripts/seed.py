"""Seed the content graph with demo accounts, content items and tags."""
import argparse
import asyncio
import random
import time

from content_graph.database import Base, async_session, engine
from content_graph.services import account_service, content_service, tag_service

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]

FIRST_NAMES = ["Ada", "Grace", "Alan", "Edsger", "Barbara", "Donald", "Margaret", "Ken"]
LAST_NAMES = ["Lovelace", "Hopper", "Turing", "Dijkstra", "Liskov", "Knuth", "Hamilton", "Thompson"]


async def seed(small: bool = False):
    num_accounts = 10 if small else 50
    items_per_account = 5 if small else 40

    print(f"Seeding: {num_accounts} accounts, {num_accounts * items_per_account} content items")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        tag_ids = []
        for name in TAGS:
            tag = await tag_service.create_tag(session, {"name": name})
            tag_ids.append(tag["id"])
        print(f"  Created {len(tag_ids)} tags")

        for i in range(num_accounts):
            # Every third account has no profile, to exercise the optional side.
            profile = None
            if i % 3:
                profile = {
                    "first_name": random.choice(FIRST_NAMES),
                    "last_name": random.choice(LAST_NAMES),
                    "bio": f"I am demo account number {i}. I write about technology.",
                }
            account = await account_service.register_account(
                session,
                {"handle": f"user_{i:04d}", "email": f"user_{i:04d}@example.com"},
                profile,
            )

            for j in range(items_per_account):
                topic = random.choice(TAGS)
                item = await content_service.create_content_item(
                    session,
                    {
                        "account_id": account["id"],
                        "title": f"Item {j}: How to optimize {topic} applications",
                        "body": f"This is the full body of item {j} about {topic}. " * 10,
                        "published": random.random() > 0.1,  # 90% published
                    },
                )
                await content_service.assign_tags_to_content_item(
                    session, item["id"], random.sample(tag_ids, k=random.randint(1, 4))
                )

            print(f"  Account {account['handle']}: {items_per_account} items")

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the content graph database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 items)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
