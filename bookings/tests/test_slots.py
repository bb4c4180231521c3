from django.test import SimpleTestCase

from bookings.slots import (
    InvalidInput,
    add_slot_duration,
    build_slot_sequence,
    format_slots,
    full_day_slots,
    slot_choices,
    slot_range_label,
    toggle_slot,
    validate_slots,
)


class FullDaySlotsTest(SimpleTestCase):
    """The configured slot vocabulary"""

    def test_full_day_is_fourteen_slots_without_lunch_break(self):
        """09:00-17:00 with a 13:00-14:00 break yields 14 half-hour slots"""
        self.assertEqual(
            full_day_slots(),
            (
                "09:00", "09:30", "10:00", "10:30", "11:00", "11:30", "12:00", "12:30",
                "14:00", "14:30", "15:00", "15:30", "16:00", "16:30",
            ),
        )
        self.assertNotIn("13:00", full_day_slots())
        self.assertNotIn("13:30", full_day_slots())

    def test_sequence_is_immutable(self):
        self.assertIsInstance(full_day_slots(), tuple)

    def test_build_slot_sequence_with_other_hours(self):
        self.assertEqual(
            build_slot_sequence("08:00", "10:00", "09:00", "09:30"),
            ("08:00", "08:30", "09:30"),
        )

    def test_slot_choices_labels(self):
        choices = slot_choices()
        self.assertEqual(len(choices), 14)
        self.assertEqual(choices[0], ("09:00", "09:00–09:30"))
        self.assertEqual(choices[-1], ("16:30", "16:30–17:00"))


class SlotArithmeticTest(SimpleTestCase):
    """Toggling, labelling and validating slot sets"""

    def test_toggle_adds_and_sorts(self):
        self.assertEqual(toggle_slot(["11:00", "09:00"], "10:00"), ["09:00", "10:00", "11:00"])

    def test_toggle_removes_present_slot(self):
        self.assertEqual(toggle_slot(["09:00", "09:30"], "09:00"), ["09:30"])

    def test_toggle_twice_returns_original_set(self):
        original = ["09:00", "10:30", "14:00"]
        self.assertEqual(toggle_slot(toggle_slot(original, "12:00"), "12:00"), original)
        self.assertEqual(toggle_slot(toggle_slot(original, "10:30"), "10:30"), original)

    def test_toggle_allows_empty_result(self):
        self.assertEqual(toggle_slot(["09:00"], "09:00"), [])

    def test_range_label_single_slot(self):
        self.assertEqual(slot_range_label({"09:00"}), ("09:00", "09:30"))

    def test_range_label_rolls_over_the_hour(self):
        self.assertEqual(slot_range_label({"16:30"}), ("16:30", "17:00"))

    def test_range_label_uses_earliest_and_latest(self):
        self.assertEqual(slot_range_label(["15:00", "09:30", "12:30"]), ("09:30", "15:30"))

    def test_range_label_rejects_empty_set(self):
        with self.assertRaises(InvalidInput):
            slot_range_label([])

    def test_add_slot_duration(self):
        self.assertEqual(add_slot_duration("09:00"), "09:30")
        self.assertEqual(add_slot_duration("12:30"), "13:00")

    def test_validate_sorts_and_deduplicates(self):
        self.assertEqual(validate_slots(["10:30", "10:00", "10:30"]), ["10:00", "10:30"])

    def test_validate_rejects_empty(self):
        with self.assertRaises(InvalidInput):
            validate_slots([])

    def test_validate_rejects_lunch_break_slot(self):
        with self.assertRaises(InvalidInput):
            validate_slots(["12:30", "13:00"])

    def test_validate_rejects_off_grid_value(self):
        with self.assertRaises(InvalidInput):
            validate_slots(["09:15"])

    def test_format_slots(self):
        self.assertEqual(format_slots([], "full-day"), "Full Day (09:00 - 17:00)")
        self.assertEqual(format_slots(["10:00"]), "10:00 - 10:30")
        self.assertEqual(format_slots(["10:30", "10:00"]), "10:00 - 11:00 (2 slots)")
