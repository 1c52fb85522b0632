import json
import threading
import unittest

from connector import InMemoryBoardBackend, RemoteUnavailable
from scheduling import ActionStatus, FrontDeskBoard, Period, ValidationError
from scheduling.slots import RESERVED_NUMBERS


class FrontDeskBoardTests(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = InMemoryBoardBackend()

    def _offline_board(self) -> FrontDeskBoard:
        self.backend.failure = RemoteUnavailable("down")
        board = FrontDeskBoard(self.backend)
        board.start()
        return board

    def test_offline_start_seeds_frozen_baseline_for_both_periods(self) -> None:
        board = self._offline_board()

        self.assertFalse(board.online)
        self.assertTrue(board.loaded)
        for controller in (board.today, board.yesterday):
            for doctor, reserved in RESERVED_NUMBERS.items():
                queue = controller.queue(doctor)
                self.assertEqual(sorted(queue.in_use()), sorted(reserved))
                self.assertTrue(all(record.frozen for record in queue.records))
                self.assertEqual(queue.list_visible(), [])

    def test_periods_allocate_numbers_independently(self) -> None:
        board = self._offline_board()

        today_first = board.today.add("umar", "Alice").appointment
        yesterday_first = board.yesterday.add("umar", "Zoe").appointment
        today_second = board.today.add("umar", "Bob").appointment
        yesterday_second = board.yesterday.add("umar", "Yan").appointment

        self.assertEqual(today_first.appointment_no, 4)
        self.assertEqual(yesterday_first.appointment_no, 4)
        self.assertEqual(today_second.appointment_no, 5)
        self.assertEqual(yesterday_second.appointment_no, 5)
        self.assertEqual(board.statistics()["today"]["umar"], 2)
        self.assertEqual(board.statistics()["yesterday"]["umar"], 2)

    def test_periods_do_not_share_names_or_availability(self) -> None:
        board = self._offline_board()
        alice = board.today.add("umar", "Alice").appointment
        board.yesterday.add("umar", "Alice")
        board.today.toggle_availability("umar", "Alice")

        board.today.rename("umar", alice.id, "Alicia")

        self.assertEqual(board.today.queue("umar").availability, {"Alicia": True})
        self.assertEqual(board.yesterday.queue("umar").availability, {"Alice": False})
        self.assertEqual(board.yesterday.queue("umar").list_visible()[0].patient_name, "Alice")

    def test_edit_cursors_are_per_period(self) -> None:
        board = self._offline_board()
        alice = board.today.add("umar", "Alice").appointment
        board.yesterday.add("umar", "Zoe")

        board.today.begin_edit("umar", alice.id)

        self.assertEqual(board.today.queue("umar").editing, alice)
        self.assertIsNone(board.yesterday.queue("umar").editing)

    def test_online_start_loads_both_periods(self) -> None:
        self.backend.create_appointment("umar", "Alice", 4, period="today")
        self.backend.create_appointment("umar", "Zoe", 4, period="yesterday")
        self.backend.create_appointment("samreen", "Bob", 6, period="yesterday")
        self.backend.update_patient_status("umar", "Zoe", True, period="yesterday")
        board = FrontDeskBoard(self.backend)

        self.assertTrue(board.start())

        self.assertEqual([r.patient_name for r in board.today.queue("umar").list_visible()], ["Alice"])
        self.assertEqual([r.patient_name for r in board.yesterday.queue("umar").list_visible()], ["Zoe"])
        self.assertEqual(board.yesterday.queue("umar").availability, {"Zoe": True})
        self.assertEqual(board.today.queue("umar").availability, {"Alice": False})
        self.assertEqual(board.today.add("umar", "Cara").appointment.appointment_no, 5)

    def test_reload_recovers_remote_after_outage(self) -> None:
        board = self._offline_board()
        board.today.add("umar", "Local only")

        self.backend.failure = None
        self.assertTrue(board.reload())

        self.assertTrue(board.online)
        self.assertEqual(board.today.queue("umar").list_visible(), [])

    def test_period_lookup_accepts_names(self) -> None:
        board = self._offline_board()

        self.assertIs(board.period("yesterday"), board.yesterday)
        self.assertIs(board.period(Period.TODAY), board.today)
        with self.assertRaises(ValidationError):
            board.period("tomorrow")

    def test_snapshot_is_json_serialisable(self) -> None:
        board = self._offline_board()
        board.today.add("samreen", "Bob")

        snapshot = json.loads(json.dumps(board.snapshot()))

        self.assertFalse(snapshot["online"])
        samreen = snapshot["periods"]["today"]["doctors"]["samreen"]
        self.assertEqual(samreen["appointments"][0]["appointmentNo"], 6)
        self.assertEqual(samreen["availability"], {"Bob": False})
        self.assertEqual(snapshot["periods"]["yesterday"]["statistics"]["total"], 0)

    def test_snapshot_is_a_copy(self) -> None:
        board = self._offline_board()
        board.today.add("umar", "Alice")

        snapshot = board.snapshot()
        snapshot["periods"]["today"]["doctors"]["umar"]["availability"]["Alice"] = True

        self.assertFalse(board.today.queue("umar").is_available("Alice"))

    def test_concurrent_adds_run_one_at_a_time(self) -> None:
        board = FrontDeskBoard(self.backend)
        self.assertTrue(board.start())
        self.backend.latency = 0.2
        self.backend.slow_operations = {"create_appointment"}
        outcomes = []

        def add(name: str) -> None:
            outcomes.append(board.today.add("umar", name))

        threads = [threading.Thread(target=add, args=(name,)) for name in ("Alice", "Bob")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual([outcome.status for outcome in outcomes], [ActionStatus.REMOTE] * 2)
        self.assertTrue(board.online)
        local = sorted(record.appointment_no for record in board.today.queue("umar").list_visible())
        remote = sorted(row["appointmentNo"] for row in self.backend.list_appointments("umar", "today"))
        self.assertEqual(local, [4, 5])
        self.assertEqual(remote, [4, 5])


if __name__ == "__main__":
    unittest.main()
