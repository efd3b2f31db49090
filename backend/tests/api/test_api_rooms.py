"""
房间管理 API 测试
覆盖 /rooms 端点与房态看板
"""
from datetime import timedelta
from decimal import Decimal
from fastapi.testclient import TestClient

from frontdesk.models.ontology import Reservation, ReservationStatus, Transaction, TransactionType


class TestRoomsApi:
    """房间维护"""

    def test_list_rooms(self, client: TestClient, accountant_headers, sample_rooms):
        response = client.get("/rooms", headers=accountant_headers)

        assert response.status_code == 200
        data = response.json()
        assert [r["room_number"] for r in data] == ["101", "102", "201"]
        assert float(data[0]["price"]) == 5000.0

    def test_create_room_admin_only(self, client: TestClient, front_desk_headers, admin_headers):
        payload = {"room_number": "305", "category": "Twin Deluxe", "price": "6500.00"}

        assert client.post("/rooms", headers=front_desk_headers, json=payload).status_code == 403
        response = client.post("/rooms", headers=admin_headers, json=payload)
        assert response.status_code == 200
        assert response.json()["status"] == "AVAILABLE"

    def test_create_duplicate_room(self, client: TestClient, admin_headers, sample_rooms):
        response = client.post("/rooms", headers=admin_headers, json={
            "room_number": "101", "category": "Twin Deluxe", "price": "100"
        })
        assert response.status_code == 400
        assert "已存在" in response.json()["detail"]

    def test_update_room(self, client: TestClient, admin_headers, sample_rooms):
        response = client.put("/rooms/201", headers=admin_headers, json={"price": "15000"})
        assert response.status_code == 200
        assert float(response.json()["price"]) == 15000.0

    def test_get_unknown_room(self, client: TestClient, admin_headers):
        assert client.get("/rooms/999", headers=admin_headers).status_code == 404


class TestRoomStatusApi:
    """房间状态写入：管理员与前台"""

    def test_front_desk_can_update_status(self, client: TestClient, front_desk_headers, sample_rooms):
        response = client.patch("/rooms/101/status", headers=front_desk_headers, json={"status": "DIRTY"})
        assert response.status_code == 200
        assert response.json()["status"] == "DIRTY"

    def test_accountant_cannot_update_status(self, client: TestClient, accountant_headers, sample_rooms):
        response = client.patch("/rooms/101/status", headers=accountant_headers, json={"status": "DIRTY"})
        assert response.status_code == 403

    def test_unknown_room_status(self, client: TestClient, admin_headers):
        response = client.patch("/rooms/999/status", headers=admin_headers, json={"status": "DIRTY"})
        assert response.status_code == 404

    def test_invalid_status_value(self, client: TestClient, admin_headers, sample_rooms):
        response = client.patch("/rooms/101/status", headers=admin_headers, json={"status": "BROKEN"})
        assert response.status_code == 422


class TestStatusBoardApi:
    """房态看板"""

    def test_board(self, client: TestClient, accountant_headers, db_session, sample_rooms, today):
        db_session.add(Reservation(
            room_numbers=["102"], guest_ids=[], room_rates={},
            check_in=today, check_out=today + timedelta(days=1), status=ReservationStatus.CHECKED_IN
        ))
        db_session.add(Transaction(room_number="102", guest_name="Walk-in",
                                   type=TransactionType.MINI_BAR, amount=Decimal("350")))
        db_session.commit()

        response = client.get("/rooms/board", headers=accountant_headers,
                              params={"view_date": today.isoformat()})

        assert response.status_code == 200
        data = response.json()
        assert data["stats"]["occupied"] == 1
        assert data["stats"]["available"] == 2
        room_102 = next(r for r in data["rooms"] if r["room_number"] == "102")
        assert room_102["status"] == "OCCUPIED"
        assert room_102["physical_status"] == "AVAILABLE"
        assert data["recent_transactions"][0]["type"] == "Mini-bar"

    def test_board_filter(self, client: TestClient, accountant_headers, sample_rooms):
        response = client.get("/rooms/board", headers=accountant_headers,
                              params={"category": "Royal Suite"})
        data = response.json()
        assert [r["room_number"] for r in data["rooms"]] == ["201"]
        assert data["stats"]["available"] == 3

    def test_active_reservation_none(self, client: TestClient, accountant_headers, sample_rooms):
        response = client.get("/rooms/101/active-reservation", headers=accountant_headers)
        assert response.status_code == 200
        assert response.json() is None
