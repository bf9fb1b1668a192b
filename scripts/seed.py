"""Database seeder: forum and blog sections with articles and comments."""
import asyncio
import argparse
import random
import time
import uuid
from datetime import datetime, timezone, timedelta

from article_store.database import engine, async_session, Base
from article_store.models import Article, ArticleStatus, Comment, Section, SectionType
from article_store.rendering import render

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance"]

SECTIONS = [
    ("General", SectionType.FORUM),
    ("Help", SectionType.FORUM),
    ("Announcements", SectionType.FORUM),
    ("Engineering Blog", SectionType.BLOG),
    ("Community Blog", SectionType.BLOG),
]


def _markdown_body(i: int, topic: str) -> str:
    return (
        f"# Notes on {topic}\n\n"
        f"Article **{i}** walks through a few `{topic}` tips.\n\n"
        "- measure first\n- change one thing\n- measure again\n"
    )


async def seed(small: bool = False):
    num_authors = 10 if small else 50
    num_articles = 100 if small else 10000
    max_comments = 2 if small else 5

    print(f"Seeding: {len(SECTIONS)} sections, {num_articles} articles, up to {max_comments} comments each")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    authors = [uuid.uuid4() for _ in range(num_authors)]

    async with async_session() as session:
        sections = []
        for title, section_type in SECTIONS:
            section = Section(id=uuid.uuid4(), title=title, section_type=section_type)
            session.add(section)
            sections.append(section)
        await session.flush()
        print(f"  Created {len(sections)} sections")

        batch_size = 500
        total_comments = 0
        for batch_start in range(0, num_articles, batch_size):
            batch_end = min(batch_start + batch_size, num_articles)
            for i in range(batch_start, batch_end):
                topic = random.choice(TAGS)
                raw = _markdown_body(i, topic)
                created = datetime.now(timezone.utc) - timedelta(minutes=random.randint(0, 525600))
                roll = random.random()
                status = (
                    ArticleStatus.NORMAL if roll > 0.1
                    else ArticleStatus.FROZEN if roll > 0.05
                    else ArticleStatus.DELETED
                )
                article = Article(
                    id=uuid.uuid4(),
                    title=f"Article {i}: working with {topic}",
                    raw_content=raw,
                    content=render(raw),
                    section_id=random.choice(sections).id,
                    author_id=random.choice(authors),
                    tags=",".join(random.sample(TAGS, k=random.randint(1, 3))),
                    created_time=created,
                    status=status,
                )
                session.add(article)

                for _ in range(random.randint(0, max_comments)):
                    comment_raw = f"Thanks for the *{topic}* write-up."
                    session.add(Comment(
                        id=uuid.uuid4(),
                        article_id=article.id,
                        author_id=random.choice(authors),
                        raw_content=comment_raw,
                        content=render(comment_raw),
                        created_time=created + timedelta(hours=random.randint(1, 48)),
                        status=ArticleStatus.NORMAL,
                    ))
                    total_comments += 1

            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: articles created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Sections: {len(SECTIONS)}")
    print(f"  Articles: {num_articles}")
    print(f"  Comments: {total_comments}")


def main():
    parser = argparse.ArgumentParser(description="Seed the article store database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
