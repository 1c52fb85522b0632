import unittest
from unittest.mock import MagicMock

import requests

from connector.board_client import (
    BoardAPIClient,
    RemoteProtocolError,
    RemoteTimeout,
    RemoteUnavailable,
)


def _response(payload=None, *, ok: bool = True, status_code: int = 200, text: str = "") -> MagicMock:
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.text = text
    response.headers = {"Content-Type": "application/json" if payload is not None else "text/plain"}
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


class BoardAPIClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        self.client = BoardAPIClient(
            base_url="https://board.example/api/",
            timeout=5.0,
            probe_timeout=3.0,
            session=self.session,
        )

    def test_requires_base_url(self) -> None:
        with self.assertRaises(ValueError):
            BoardAPIClient(base_url="", session=self.session)

    def test_list_appointments_unwraps_envelope(self) -> None:
        rows = [{"id": 7, "patientName": "Alice", "appointmentNo": 4, "frozen": False}]
        self.session.request.return_value = _response({"success": True, "data": rows})

        result = self.client.list_appointments("umar", "yesterday")

        self.assertEqual(result, rows)
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "GET")
        self.assertEqual(kwargs["url"], "https://board.example/api/appointments")
        self.assertEqual(kwargs["params"], {"type": "yesterday", "doctor": "umar"})
        self.assertEqual(kwargs["timeout"], 5.0)

    def test_probe_uses_short_deadline(self) -> None:
        self.session.request.return_value = _response({"success": True, "data": []})

        self.assertTrue(self.client.probe())
        self.assertEqual(self.session.request.call_args.kwargs["timeout"], 3.0)

    def test_create_appointment_posts_camel_case_body(self) -> None:
        record = {"id": 11, "patientName": "Alice", "appointmentNo": 4, "frozen": False}
        self.session.request.return_value = _response({"success": True, "data": record})

        result = self.client.create_appointment("umar", "Alice", 4, period="today")

        self.assertEqual(result, record)
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "POST")
        self.assertEqual(
            kwargs["json"],
            {"doctor": "umar", "patientName": "Alice", "appointmentNo": 4, "frozen": False, "type": "today"},
        )

    def test_delete_appointment_sends_query_parameters(self) -> None:
        self.session.request.return_value = _response({"success": True})

        self.client.delete_appointment("11", period="today")

        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "DELETE")
        self.assertEqual(kwargs["params"], {"id": "11", "type": "today"})

    def test_timeout_maps_to_remote_timeout(self) -> None:
        self.session.request.side_effect = requests.Timeout("slow")

        with self.assertRaises(RemoteTimeout):
            self.client.list_patient_status("umar", "today")

    def test_connection_error_maps_to_remote_unavailable(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(RemoteUnavailable):
            self.client.probe()

    def test_http_error_maps_to_protocol_error(self) -> None:
        self.session.request.return_value = _response(ok=False, status_code=500, text="boom")

        with self.assertLogs("connector.board_client", level="ERROR") as logs:
            with self.assertRaises(RemoteProtocolError):
                self.client.update_appointment("11", "Bob", period="today")

        self.assertIn("PUT appointments answered 500: boom", logs.output[0])

    def test_failure_envelope_maps_to_protocol_error(self) -> None:
        self.session.request.return_value = _response({"success": False, "error": "duplicate number"})

        with self.assertRaises(RemoteProtocolError) as ctx:
            self.client.create_appointment("umar", "Alice", 4, period="today")
        self.assertIn("duplicate number", str(ctx.exception))

    def test_invalid_json_maps_to_protocol_error(self) -> None:
        self.session.request.return_value = _response(None)

        with self.assertRaises(RemoteProtocolError):
            self.client.list_appointments("umar", "today")

    def test_missing_record_in_create_response_is_protocol_error(self) -> None:
        self.session.request.return_value = _response({"success": True, "data": None})

        with self.assertRaises(RemoteProtocolError):
            self.client.create_appointment("umar", "Alice", 4, period="today")


if __name__ == "__main__":
    unittest.main()
