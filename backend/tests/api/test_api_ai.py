"""
AI 辅助 API 测试（测试环境关闭大模型）
"""
from unittest.mock import patch
from fastapi.testclient import TestClient

from frontdesk.services.ai_service import AIService, MISSING_KEY_MESSAGE


class TestAiApi:

    def test_briefing_without_llm(self, client: TestClient, accountant_headers, sample_rooms):
        response = client.get("/ai/briefing", headers=accountant_headers)
        assert response.status_code == 200
        assert response.json()["text"] == MISSING_KEY_MESSAGE

    def test_briefing_passes_board_stats(self, client: TestClient, accountant_headers, sample_rooms):
        with patch.object(AIService, "operations_briefing", return_value="ok") as briefing:
            response = client.get("/ai/briefing", headers=accountant_headers)

        assert response.json()["text"] == "ok"
        assert briefing.call_args[0][0]["available"] == 3

    def test_refine_notes_requires_text(self, client: TestClient, front_desk_headers):
        response = client.post("/ai/refine-notes", headers=front_desk_headers, json={})
        assert response.status_code == 400

    def test_refine_notes_front_desk_only(self, client: TestClient, accountant_headers):
        response = client.post("/ai/refine-notes", headers=accountant_headers, json={"notes": "late arrival"})
        assert response.status_code == 403
