"""
日报 API 测试
"""
from datetime import timedelta
from decimal import Decimal
from fastapi.testclient import TestClient

from frontdesk.models.ontology import Reservation, ReservationStatus


class TestDailyReportApi:

    def test_daily_report(self, client: TestClient, accountant_headers, db_session,
                          sample_rooms, sample_guest, today):
        db_session.add(Reservation(
            room_numbers=["102"], guest_ids=[sample_guest.id], room_rates={},
            check_in=today - timedelta(days=1), check_out=today,
            paid_amount=Decimal("4000"), status=ReservationStatus.CHECKED_IN
        ))
        db_session.commit()

        response = client.get("/reports/daily", headers=accountant_headers,
                              params={"date": today.isoformat()})

        assert response.status_code == 200
        data = response.json()
        assert data["is_closed"] is False
        assert data["rows"][0]["resident_name"] == "Rahim Uddin"
        assert float(data["stats"]["sum_bill"]) == 7000.0
        assert float(data["stats"]["sum_due"]) == 3000.0

        response = client.get("/reports/daily", headers=accountant_headers,
                              params={"date": today.isoformat(), "q": "201"})
        assert response.json()["rows"] == []

    def test_token_adjustment(self, client: TestClient, accountant_headers, today):
        response = client.put(f"/reports/daily/{today.isoformat()}/token", headers=accountant_headers,
                              json={"amount": "250"})
        assert response.status_code == 200

        data = client.get("/reports/daily", headers=accountant_headers,
                          params={"date": today.isoformat()}).json()
        assert float(data["token_adjustment"]) == 250.0
        assert float(data["stats"]["closing_balance"]) == -250.0

    def test_negative_token_rejected(self, client: TestClient, accountant_headers, today):
        response = client.put(f"/reports/daily/{today.isoformat()}/token", headers=accountant_headers,
                              json={"amount": "-1"})
        assert response.status_code == 422


class TestCloseDayApi:
    """日结"""

    def test_close_once(self, client: TestClient, accountant_headers, today):
        url = f"/reports/daily/{today.isoformat()}/close"

        response = client.post(url, headers=accountant_headers)
        assert response.status_code == 200
        assert response.json()["next_date"] == (today + timedelta(days=1)).isoformat()

        response = client.post(url, headers=accountant_headers)
        assert response.status_code == 400
        assert "已日结" in response.json()["detail"]

    def test_token_locked_after_close(self, client: TestClient, accountant_headers, today):
        client.post(f"/reports/daily/{today.isoformat()}/close", headers=accountant_headers)
        response = client.put(f"/reports/daily/{today.isoformat()}/token", headers=accountant_headers,
                              json={"amount": "10"})
        assert response.status_code == 400

    def test_summary_without_llm(self, client: TestClient, accountant_headers, today):
        response = client.get(f"/reports/daily/{today.isoformat()}/summary", headers=accountant_headers)
        assert response.status_code == 200
        assert response.json()["text"] == "API Key is missing. Check configuration."
