import unittest

from scheduling.slots import RESERVED_NUMBERS, next_slot


class NextSlotTests(unittest.TestCase):
    def test_empty_sets_start_at_one(self) -> None:
        self.assertEqual(next_slot(set(), set()), 1)

    def test_never_returns_reserved_or_in_use_number(self) -> None:
        cases = [
            ({1, 2, 3}, set()),
            (set(), {1, 2, 3, 5}),
            ({2, 4, 6}, {1, 3, 5}),
            (RESERVED_NUMBERS["samreen"], {6, 7, 10, 11}),
            ({1}, set(range(2, 200))),
        ]
        for reserved, in_use in cases:
            with self.subTest(reserved=sorted(reserved), in_use=sorted(in_use)):
                slot = next_slot(reserved, in_use)
                self.assertNotIn(slot, reserved)
                self.assertNotIn(slot, in_use)
                self.assertGreaterEqual(slot, 1)
                for lower in range(1, slot):
                    self.assertTrue(lower in reserved or lower in in_use)

    def test_first_allocations_for_umar_skip_reserved(self) -> None:
        reserved = RESERVED_NUMBERS["umar"]
        in_use: set[int] = set()
        issued = []
        for _ in range(3):
            number = next_slot(reserved, in_use)
            issued.append(number)
            in_use.add(number)

        self.assertEqual(issued, [4, 5, 6])

    def test_samreen_allocations_jump_over_reserved_runs(self) -> None:
        reserved = RESERVED_NUMBERS["samreen"]
        in_use: set[int] = set()
        issued = []
        for _ in range(4):
            number = next_slot(reserved, in_use)
            issued.append(number)
            in_use.add(number)

        self.assertEqual(issued, [6, 7, 10, 11])

    def test_gap_left_by_deleted_number_is_reused(self) -> None:
        self.assertEqual(next_slot({1, 2, 3}, {4, 6, 7}), 5)

    def test_accepts_any_iterables(self) -> None:
        self.assertEqual(next_slot([1, 2], (3, 4)), 5)


if __name__ == "__main__":
    unittest.main()
