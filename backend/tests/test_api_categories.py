"""Tests for categories API endpoints."""

import pytest
from postdesk.models.category import Category
from postdesk.models.post import post_categories
from conftest import make_post


@pytest.mark.unit
class TestCategoriesAPI:
    """Test categories API endpoints."""

    def test_get_categories(self, client, db_session, test_category):
        """Listing is public and alphabetical."""
        db_session.add(Category(name="Art", slug="art"))
        db_session.commit()

        response = client.get("/api/categories")

        assert response.status_code == 200
        data = response.json()
        assert [cat["name"] for cat in data] == ["Art", "Technology"]
        assert data[1]["id"] == test_category.id
        assert data[1]["description"] == "Tech news and updates"

    def test_get_category(self, client, test_category):
        response = client.get(f"/api/categories/{test_category.id}")

        assert response.status_code == 200
        assert response.json()["slug"] == "technology"

    def test_get_missing_category(self, client):
        response = client.get("/api/categories/999")

        assert response.status_code == 404
        assert response.json() == {"error": "Category not found"}

    def test_create_category(self, authenticated_client):
        category_data = {
            "name": "Science",
            "slug": "science",
            "description": "Scientific news and discoveries",
        }

        response = authenticated_client.post("/api/categories", json=category_data)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Science"
        assert data["slug"] == "science"
        assert data["description"] == "Scientific news and discoveries"

    def test_create_category_derives_slug(self, authenticated_client):
        response = authenticated_client.post(
            "/api/categories", json={"name": "Home & Garden"}
        )

        assert response.status_code == 201
        assert response.json()["slug"] == "home-garden"

    def test_create_duplicate_category(self, authenticated_client, test_category):
        response = authenticated_client.post(
            "/api/categories", json={"name": "Tech", "slug": "Technology"}
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Category with this slug already exists"}

    def test_create_requires_name(self, authenticated_client):
        response = authenticated_client.post("/api/categories", json={"slug": "x"})

        assert response.status_code == 400

    def test_create_requires_authentication(self, client):
        response = client.post("/api/categories", json={"name": "Science"})

        assert response.status_code == 401

    def test_author_can_manage_categories(self, client, author_user):
        """Category changes need a session, not a particular role."""
        from conftest import login

        response = login(client, author_user).post(
            "/api/categories", json={"name": "Poetry"}
        )
        assert response.status_code == 201

    def test_update_category(self, authenticated_client, test_category):
        response = authenticated_client.put(
            f"/api/categories/{test_category.id}",
            json={"name": "Tech", "description": "Gadgets"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Tech"
        assert data["slug"] == "technology"
        assert data["description"] == "Gadgets"

    def test_update_trims_like_create(self, authenticated_client, test_category):
        response = authenticated_client.put(
            f"/api/categories/{test_category.id}",
            json={"name": "  Tech  ", "description": "  Gadgets  "},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Tech"
        assert data["description"] == "Gadgets"

    def test_update_blank_values(self, authenticated_client, test_category):
        response = authenticated_client.put(
            f"/api/categories/{test_category.id}", json={"name": "   "}
        )
        assert response.status_code == 400

        response = authenticated_client.put(
            f"/api/categories/{test_category.id}", json={"description": "   "}
        )
        assert response.status_code == 200
        assert response.json()["description"] is None

    def test_update_slug_conflict(self, authenticated_client, db_session, test_category):
        db_session.add(Category(name="Science", slug="science"))
        db_session.commit()

        response = authenticated_client.put(
            f"/api/categories/{test_category.id}", json={"slug": "science"}
        )

        assert response.status_code == 409

    def test_update_to_own_slug(self, authenticated_client, test_category):
        response = authenticated_client.put(
            f"/api/categories/{test_category.id}", json={"slug": "technology"}
        )

        assert response.status_code == 200

    def test_update_missing_category(self, authenticated_client):
        response = authenticated_client.put("/api/categories/999", json={"name": "X"})

        assert response.status_code == 404

    def test_delete_category_detaches_posts(
        self, authenticated_client, db_session, test_user, test_category
    ):
        post = make_post(
            db_session, test_user, "Tagged", status="published", categories=[test_category]
        )
        post_id = post.id

        response = authenticated_client.delete(f"/api/categories/{test_category.id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Category deleted successfully"}
        assert db_session.query(Category).count() == 0
        assert db_session.execute(post_categories.select()).fetchall() == []

        remaining = authenticated_client.get(f"/api/posts/{post_id}").json()
        assert remaining["categories"] == []

    def test_delete_missing_category(self, authenticated_client):
        assert authenticated_client.delete("/api/categories/999").status_code == 404
