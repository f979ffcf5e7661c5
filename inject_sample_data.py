#!/usr/bin/env python3
"""
Script to inject sample content directly into the database.
Creates an admin account (when none exists), a few categories and a handful
of draft and published posts for trying out the dashboard.

Usage: ADMIN_PASSWORD=your-secure-password python3 inject_sample_data.py
"""

import os
import secrets
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent / "backend"))

from postdesk.core.database import SessionLocal
from postdesk.core.security import hash_password
from postdesk.models.category import Category
from postdesk.models.post import Post
from postdesk.models.user import User
from postdesk.services.slugs import generate_slug, with_timestamp_suffix


SAMPLE_CATEGORIES = [
    {"name": "Technology", "description": "Software, hardware and the web"},
    {"name": "Travel", "description": "Places worth the trip"},
    {"name": "Food", "description": "Recipes and restaurants"},
]

SAMPLE_POSTS = [
    {
        "title": "Welcome to PostDesk",
        "content": "This is your first published post. Edit or trash it from the dashboard.",
        "status": "published",
        "categories": ["technology"],
        "tags": ["welcome"],
    },
    {
        "title": "Three days in Lisbon",
        "content": "Trams, tiles and pastel de nata.",
        "status": "published",
        "categories": ["travel", "food"],
        "tags": ["portugal", "city-break"],
    },
    {
        "title": "Notes on a draft",
        "content": "Drafts stay out of the public listing until published.",
        "status": "draft",
        "categories": [],
        "tags": [],
    },
]


def get_or_create_admin(db) -> User:
    """Return the first admin, creating one from the environment if needed."""
    admin = db.query(User).filter(User.role == "admin").first()
    if admin:
        print(f"✓ Found admin: {admin.email} (ID: {admin.id})")
        return admin

    admin_email = os.getenv("ADMIN_EMAIL", "admin@postdesk.io")
    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        admin_password = secrets.token_urlsafe(16)
        print("No ADMIN_PASSWORD env var set. Generated password:")
        print(f"  {admin_password}")
        print()

    admin = User(
        name="Administrator",
        email=admin_email,
        password_hash=hash_password(admin_password),
        role="admin",
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    print(f"✓ Created admin: {admin.email} (ID: {admin.id})")
    return admin


def inject_sample_data():
    """Inject sample categories and posts into the database."""
    print("🔌 Connecting to database...")
    db = SessionLocal()

    try:
        admin = get_or_create_admin(db)
        print()

        categories = {}
        for data in SAMPLE_CATEGORIES:
            slug = generate_slug(data["name"])
            category = db.query(Category).filter(Category.slug == slug).first()
            if category:
                print(f"⊘ Category already exists: {data['name']}")
            else:
                category = Category(name=data["name"], slug=slug, description=data["description"])
                db.add(category)
                db.commit()
                print(f"✓ Added category: {data['name']}")
            categories[slug] = category

        added_count = 0
        for data in SAMPLE_POSTS:
            if db.query(Post).filter(Post.title == data["title"]).first():
                print(f"⊘ Post already exists: {data['title']}")
                continue

            post = Post(
                title=data["title"],
                content=data["content"],
                slug=with_timestamp_suffix(generate_slug(data["title"])),
                tags=data["tags"],
                status=data["status"],
                deleted=False,
                author_id=admin.id,
                categories=[categories[slug] for slug in data["categories"]],
            )
            db.add(post)
            db.commit()
            print(f"✓ Added {data['status']} post: {post.title} ({post.slug})")
            added_count += 1

        print()
        print(f"✓ Successfully added {added_count} sample post(s)")

    except Exception as e:
        print(f"❌ Error: {e}")
        db.rollback()
        raise

    finally:
        db.close()
        print()
        print("✓ Database session closed")


if __name__ == "__main__":
    print("=" * 60)
    print("  PostDesk Sample Data Injection Script")
    print("=" * 60)
    print()

    inject_sample_data()
