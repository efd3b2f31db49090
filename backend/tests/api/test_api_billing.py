"""
账单与流水 API 测试
"""
from datetime import timedelta
from decimal import Decimal
from fastapi.testclient import TestClient

from frontdesk.models.ontology import Reservation, ReservationStatus


def _reservation(db_session, guest, today, status=ReservationStatus.CHECKED_IN):
    res = Reservation(
        room_numbers=["101", "201"],
        guest_ids=[guest.id],
        room_rates={"201": "10000"},
        check_in=today,
        check_out=today + timedelta(days=2),
        mini_bar=Decimal("500"),
        discount=Decimal("1000"),
        paid_amount=Decimal("5000"),
        status=status
    )
    db_session.add(res)
    db_session.commit()
    db_session.refresh(res)
    return res


class TestInvoicesApi:

    def test_invoice_detail(self, client: TestClient, accountant_headers, db_session,
                            sample_rooms, sample_guest, today):
        res = _reservation(db_session, sample_guest, today)

        response = client.get(f"/billing/invoices/{res.id}", headers=accountant_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["invoice_no"] == res.id[:8].upper()
        assert data["guest_name"] == "Rahim Uddin"
        assert data["nights"] == 2
        assert data["check_in"] == today.strftime("%d/%m/%Y")
        # 101 牌价 5000 x 2，201 协议价 10000 x 2
        assert float(data["room_subtotal"]) == 30000.0
        assert float(data["grand_total"]) == 29500.0
        assert float(data["balance"]) == 24500.0
        assert [line["label"] for line in data["lines"]][-1] == "Discount"
        assert len(data["copies"]) == 2

    def test_list_excludes_cancelled(self, client: TestClient, accountant_headers, db_session,
                                     sample_rooms, sample_guest, today):
        _reservation(db_session, sample_guest, today)
        _reservation(db_session, sample_guest, today, status=ReservationStatus.CANCELLED)

        response = client.get("/billing/invoices", headers=accountant_headers)
        assert len(response.json()) == 1

        response = client.get("/billing/invoices", headers=accountant_headers, params={"q": "nobody"})
        assert response.json() == []

    def test_unknown_invoice(self, client: TestClient, accountant_headers):
        assert client.get("/billing/invoices/missing", headers=accountant_headers).status_code == 404


class TestTransactionsApi:

    def test_add_and_list(self, client: TestClient, front_desk_headers, sample_rooms):
        for amount in ("120", "80"):
            response = client.post("/transactions", headers=front_desk_headers, json={
                "room_number": "101", "guest_name": "Rahim Uddin", "type": "Laundry", "amount": amount
            })
            assert response.status_code == 200

        data = client.get("/transactions", headers=front_desk_headers).json()
        assert len(data) == 2
        assert len(client.get("/transactions", headers=front_desk_headers, params={"limit": 1}).json()) == 1

    def test_non_positive_amount(self, client: TestClient, front_desk_headers):
        response = client.post("/transactions", headers=front_desk_headers, json={
            "room_number": "101", "guest_name": "X", "type": "Mini-bar", "amount": "0"
        })
        assert response.status_code == 400

    def test_accountant_read_only(self, client: TestClient, accountant_headers):
        assert client.get("/transactions", headers=accountant_headers).status_code == 200
        response = client.post("/transactions", headers=accountant_headers, json={
            "room_number": "101", "guest_name": "X", "type": "Laundry", "amount": "10"
        })
        assert response.status_code == 403
