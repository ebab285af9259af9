"""End-to-end tests for the WebSocket channel."""

import pytest
from fastapi import WebSocketDisconnect


def _open(ws):
    message = ws.receive_json()
    assert message["event"] == "connected"
    return message["data"]["id"]


class TestRealtimeChannel:
    def test_patient_room_receives_record(self, client):
        with client.websocket_connect("/ws") as ws:
            _open(ws)
            ws.send_json({"event": "joinPatientRoom", "data": "ABHA1234"})
            assert ws.receive_json() == {"event": "joined", "data": {"room": "patient_ABHA1234"}}

            client.post("/api/add-record", json={"patientId": "ABHA1234", "record": {"note": "follow-up"}})

            message = ws.receive_json()
            assert message["event"] == "update-records"
            assert message["data"]["patientId"] == "ABHA1234"
            assert message["data"]["record"]["id"] == "R002"
            assert "timestamp" in message["data"]

    def test_join_role_receives_broadcast(self, client):
        with client.websocket_connect("/ws") as ws:
            _open(ws)
            ws.send_json({"event": "join-role", "data": "pharmacist"})
            assert ws.receive_json()["data"] == {"room": "pharmacist-dashboard"}

            client.post(
                "/api/add-prescription",
                json={"patientId": "ABHA1234", "prescription": {"medicines": [{"name": "ORS"}]}},
            )

            message = ws.receive_json()
            assert message["event"] == "prescriptionAdded"
            assert message["data"]["prescription"]["id"] == "PR002"

    def test_leave_stops_delivery(self, client):
        """After leaving, the next message seen is the server's reply, not the event."""
        with client.websocket_connect("/ws") as ws:
            _open(ws)
            ws.send_json({"event": "join", "data": "patient_ABHA1234"})
            ws.receive_json()
            ws.send_json({"event": "leavePatientRoom", "data": "ABHA1234"})
            assert ws.receive_json() == {"event": "left", "data": {"room": "patient_ABHA1234"}}

            client.post("/api/add-record", json={"patientId": "ABHA1234", "record": {"note": "x"}})
            ws.send_json({"event": "join", "data": "doctor-dashboard"})

            assert ws.receive_json()["event"] == "joined"

    def test_token_joins_role_room(self, client, hub):
        login = client.post(
            "/api/login", json={"role": "pharmacist", "username": "pharma1", "password": "pharmapass"}
        ).json()

        with client.websocket_connect(f"/ws?token={login['token']}") as ws:
            connection_id = _open(ws)
            assert ws.receive_json()["data"] == {"room": "pharmacist-dashboard"}
            assert connection_id in hub.members("pharmacist-dashboard")

    def test_invalid_token_is_refused(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws?token=not-a-token") as ws:
                ws.receive_json()

    @pytest.mark.parametrize("frame", [
        "not json",
        "[1, 2]",
        '{"event": "subscribe", "data": "x"}',
        '{"event": "join-role", "data": "admin"}',
        '{"event": "join", "data": ""}',
    ])
    def test_bad_messages_get_error_reply(self, client, frame):
        with client.websocket_connect("/ws") as ws:
            _open(ws)
            ws.send_text(frame)
            assert ws.receive_json()["event"] == "error"

    def test_binary_frame_gets_error_reply(self, client):
        """Binary frames are answered with an error and the channel stays usable."""
        with client.websocket_connect("/ws") as ws:
            _open(ws)
            ws.send_bytes(b"\x00\x01")
            assert ws.receive_json() == {
                "event": "error",
                "data": {"message": "Messages must be JSON text frames"},
            }

            ws.send_json({"event": "joinPatientRoom", "data": "ABHA1234"})
            assert ws.receive_json()["event"] == "joined"
