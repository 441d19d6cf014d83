import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import WebSocketDisconnect, status
from fastapi.testclient import TestClient
from app.api.deps import get_match_service
from app.core.errors import DependencyError, NotFoundError, QuotaExceededError, ValidationError
from app.main import app

AUTH = {"X-User-Id": "10"}


@pytest.fixture
def service():
    service = MagicMock()
    for name in ("like", "dislike", "like_with_message", "unmatch", "candidates",
                 "list_matches", "get_match", "likes_received", "like_status"):
        setattr(service, name, AsyncMock())
    return service


@pytest.fixture
def client(service):
    app.dependency_overrides[get_match_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_like(client, service):
    service.like.return_value = {
        "message": "Profile liked successfully",
        "isMatch": False,
        "matchId": 7,
        "remainingLikes": 4,
        "dailyLimit": 10,
    }

    response = client.post("/api/matches/like", json={"profileId": 2}, headers=AUTH)

    assert response.status_code == 200
    assert response.json()["matchId"] == 7
    service.like.assert_awaited_once_with(10, 2)


def test_like_requires_identity(client, service):
    response = client.post("/api/matches/like", json={"profileId": 2})

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}
    service.like.assert_not_called()


def test_like_with_malformed_identity(client):
    response = client.post("/api/matches/like", json={"profileId": 2}, headers={"X-User-Id": "abc"})
    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}


@pytest.mark.parametrize("body", [{}, {"profileId": "x"}, {"profileId": 0}])
def test_like_rejects_bad_body(client, service, body):
    response = client.post("/api/matches/like", json=body, headers=AUTH)

    assert response.status_code == 400
    assert "error" in response.json()
    service.like.assert_not_called()


def test_like_quota_exceeded(client, service):
    service.like.side_effect = QuotaExceededError(
        "Daily like limit reached", remainingLikes=0, dailyLimit=10, isPremium=False,
    )

    response = client.post("/api/matches/like", json={"profileId": 2}, headers=AUTH)

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Daily like limit reached"
    assert body["remainingLikes"] == 0
    assert body["dailyLimit"] == 10


def test_dislike_on_match(client, service):
    service.dislike.side_effect = ValidationError("Use unmatch to leave an existing match")

    response = client.post("/api/matches/dislike", json={"profileId": 2}, headers=AUTH)

    assert response.status_code == 400
    assert response.json() == {"error": "Use unmatch to leave an existing match"}


def test_like_with_message_requires_content(client, service):
    response = client.post("/api/matches/like-with-message", json={"profileId": 2, "message": "   "}, headers=AUTH)

    assert response.status_code == 400
    service.like_with_message.assert_not_called()


def test_like_with_message_too_long(client, service):
    response = client.post(
        "/api/matches/like-with-message", json={"profileId": 2, "message": "x" * 1001}, headers=AUTH
    )
    assert response.status_code == 400


def test_like_with_message(client, service):
    service.like_with_message.return_value = {"isMatch": True, "matchId": 7}

    response = client.post(
        "/api/matches/like-with-message", json={"profileId": 2, "message": " Hi! "}, headers=AUTH
    )

    assert response.status_code == 200
    service.like_with_message.assert_awaited_once_with(10, 2, "Hi!")


def test_unmatch_not_found(client, service):
    service.unmatch.side_effect = NotFoundError("Match not found or you are not part of this match")

    response = client.post("/api/matches/unmatch", json={"matchId": 9}, headers=AUTH)

    assert response.status_code == 404


def test_candidates_query(client, service):
    service.candidates.return_value = {"profiles": [], "totalCount": 0}

    response = client.get("/api/profiles/candidates?genderPreference=W&limit=5&offset=10", headers=AUTH)

    assert response.status_code == 200
    service.candidates.assert_awaited_once_with(10, "W", 5, 10)


def test_candidates_limit_bounds(client):
    response = client.get("/api/profiles/candidates?limit=0", headers=AUTH)
    assert response.status_code == 400


def test_dependency_failure_is_503(client, service):
    service.candidates.side_effect = DependencyError()

    response = client.get("/api/profiles/candidates", headers=AUTH)

    assert response.status_code == 503
    assert response.json() == {"error": "Service temporarily unavailable, please retry later"}


def test_like_status(client, service):
    service.like_status.return_value = {"canLike": True, "remainingLikes": -1, "dailyLimit": -1}

    response = client.get("/api/likes/status", headers=AUTH)

    assert response.json()["remainingLikes"] == -1


def test_match_routes(client, service):
    service.list_matches.return_value = []
    service.likes_received.return_value = {"likesReceived": [], "totalCount": 0}
    service.get_match.return_value = {"id": 7}

    assert client.get("/api/matches", headers=AUTH).status_code == 200
    assert client.get("/api/matches/likes-received", headers=AUTH).status_code == 200
    assert client.get("/api/matches/7", headers=AUTH).json() == {"id": 7}
    service.get_match.assert_awaited_once_with(10, 7)


@pytest.mark.parametrize("identity", ["0", "-3"])
def test_non_positive_identity(client, identity):
    response = client.get("/api/likes/status", headers={"X-User-Id": identity})

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}


def test_realtime_channel_requires_identity(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/20"):
            pass

    assert exc.value.code == status.WS_1008_POLICY_VIOLATION


def test_realtime_channel_rejects_other_users(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/20", headers={"X-User-Id": "10"}):
            pass

    assert exc.value.code == status.WS_1008_POLICY_VIOLATION


def test_realtime_channel_accepts_owner(client):
    with client.websocket_connect("/ws/20", headers={"X-User-Id": "20"}) as websocket:
        websocket.send_text("ping")
