"""Tests for the app-level exception handlers and the error envelope."""

import logging
import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

from toolcrib.app import _field_path, create_app

API = "/api/v1"


class TestFieldPath:
    def test_body_prefix_dropped(self) -> None:
        assert _field_path(("body", "custom_attributes", "diameter")) == "custom_attributes.diameter"

    def test_list_index_kept(self) -> None:
        assert _field_path(("body", "options", 0, "value")) == "options.0.value"

    def test_bare_location_kept(self) -> None:
        assert _field_path(("body",)) == "body"


class TestRequestValidation:
    @pytest.mark.asyncio
    async def test_first_field_leads_the_message(self, async_client, user_headers) -> None:
        response = await async_client.post(
            f"{API}/tools",
            json={"name": "Drill", "category_id": str(uuid.uuid4()), "quantity": -1},
            headers=user_headers,
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "quantity"
        assert error["message"].startswith("quantity: ")


class TestAppExceptionLogging:
    @pytest.mark.asyncio
    async def test_rejection_is_logged_with_code(self, async_client, user_headers, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="toolcrib.app"):
            response = await async_client.get(f"{API}/tools/{uuid.uuid4()}", headers=user_headers)

        assert response.status_code == 404
        assert "NOT_FOUND" in caplog.text


class TestIntegrityError:
    @pytest.mark.asyncio
    async def test_concurrent_duplicate_maps_to_conflict(self) -> None:
        application = create_app()

        @application.get("/duplicate")
        async def duplicate() -> dict:
            raise IntegrityError(
                "INSERT INTO categories",
                {},
                Exception("UNIQUE constraint failed: categories.parent_id, categories.name"),
            )

        transport = ASGITransport(app=application)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/duplicate", headers={"X-Request-ID": "req-dup"})

        assert response.status_code == 409
        assert response.json() == {
            "error": {
                "code": "CONFLICT",
                "message": "The request conflicts with an existing record",
                "details": [],
                "requestId": "req-dup",
            }
        }
