# backend/tests/api/test_feedback.py
import pytest
from fastapi import status
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_guest_can_leave_feedback(test_client: AsyncClient) -> None:
    response = await test_client.post(
        "/api/feedback", json={"starRating": 5, "feedbackMessage": "Murakoze!"}
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["message"] == "Thank you for your feedback!"
    assert data["feedback"]["starRating"] == 5
    assert data["feedback"]["feedbackMessage"] == "Murakoze!"
    assert data["feedback"]["user"] is None


@pytest.mark.parametrize("rating", [0, 6])
@pytest.mark.asyncio
async def test_rating_must_be_one_to_five(test_client: AsyncClient, rating: int) -> None:
    response = await test_client.post("/api/feedback", json={"starRating": rating})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_message_length_is_capped(test_client: AsyncClient) -> None:
    response = await test_client.post(
        "/api/feedback", json={"starRating": 4, "feedbackMessage": "x" * 1001}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_feedback_is_rate_limited(test_client: AsyncClient) -> None:
    for _ in range(3):
        response = await test_client.post("/api/feedback", json={"starRating": 4})
        assert response.status_code == status.HTTP_201_CREATED

    response = await test_client.post("/api/feedback", json={"starRating": 4})

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS


@pytest.mark.asyncio
async def test_listing_feedback_requires_login(test_client: AsyncClient) -> None:
    response = await test_client.get("/api/feedback")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_listing_feedback_includes_author(
    test_client: AsyncClient, auth_headers, test_user
) -> None:
    await test_client.post("/api/feedback", json={"starRating": 3}, headers=auth_headers)
    await test_client.post("/api/feedback", json={"starRating": 5})

    response = await test_client.get("/api/feedback", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    items = response.json()
    assert [item["starRating"] for item in items] == [5, 3]
    assert items[1]["user"] == {"firstName": test_user.first_name, "lastName": test_user.last_name}
    assert items[0]["user"] is None
