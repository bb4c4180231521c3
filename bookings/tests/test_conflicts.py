from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo

from django.test import SimpleTestCase
from django.utils import timezone

from bookings.conflicts import BookingDraft, calendar_date, find_conflicts
from bookings.slots import InvalidInput, full_day_slots


@dataclass
class StoredBooking:
    id: int
    resource_key: str
    booking_date: object
    selected_slots: list
    status: str = "Pending"
    event_title: str = "Guest Lecture"
    department: str = "CSE"


HALL = "venue:ramanujan-hall"
DAY = date(2025, 3, 10)


def draft(slots, resource_key=HALL, booking_date=DAY):
    return BookingDraft.build(resource_key, booking_date, slots)


class FindConflictsTest(SimpleTestCase):
    """Slot-set intersection between a draft and stored bookings"""

    def test_empty_corpus_has_no_conflicts(self):
        report = find_conflicts(draft(["10:00"]), [])
        self.assertFalse(report)
        self.assertEqual(len(report), 0)

    def test_other_resource_or_date_never_conflicts(self):
        corpus = [
            StoredBooking(1, "venue:auditorium", DAY, ["10:00"]),
            StoredBooking(2, HALL, date(2025, 3, 11), ["10:00"]),
            StoredBooking(3, "turf:football", DAY, ["10:00"]),
        ]
        self.assertFalse(find_conflicts(draft(["10:00"]), corpus))

    def test_single_active_booking_conflicts_iff_slots_intersect(self):
        stored = StoredBooking(1, HALL, DAY, ["10:00", "10:30"])
        cases = [
            (["10:30", "11:00"], True),
            (["11:00", "11:30"], False),
            (["09:30"], False),
            (["09:00", "09:30", "10:00", "10:30", "11:00"], True),
        ]
        for slots, expected in cases:
            with self.subTest(slots=slots):
                self.assertEqual(bool(find_conflicts(draft(slots), [stored])), expected)

    def test_conflict_is_symmetric(self):
        pairs = [(["10:00", "10:30"], ["10:30", "11:00"]), (["10:00"], ["10:30"]), (["14:00"], ["14:00"])]
        for first, second in pairs:
            with self.subTest(first=first, second=second):
                forward = find_conflicts(draft(first), [StoredBooking(1, HALL, DAY, second)])
                backward = find_conflicts(draft(second), [StoredBooking(2, HALL, DAY, first)])
                self.assertEqual(bool(forward), bool(backward))

    def test_rejected_and_cancelled_bookings_are_inert(self):
        corpus = [
            StoredBooking(1, HALL, DAY, list(full_day_slots()), status="Rejected"),
            StoredBooking(2, HALL, DAY, list(full_day_slots()), status="Cancelled"),
        ]
        self.assertFalse(find_conflicts(draft(["10:00"]), corpus))

    def test_approved_bookings_conflict(self):
        stored = StoredBooking(1, HALL, DAY, ["15:00"], status="Approved")
        self.assertTrue(find_conflicts(draft(["15:00"]), [stored]))

    def test_report_describes_each_conflict_in_input_order(self):
        corpus = [
            StoredBooking(7, HALL, DAY, ["11:00"], event_title="Robotics Demo", department="Mechanical"),
            StoredBooking(3, HALL, DAY, ["10:00", "10:30"], status="Approved", event_title="AI Talk"),
            StoredBooking(9, HALL, DAY, ["16:00"]),
        ]
        report = find_conflicts(draft(["10:30", "11:00"]), corpus)

        self.assertEqual(report.booking_ids, [7, 3])
        first, second = report.entries
        self.assertEqual(first.title, "Robotics Demo")
        self.assertEqual(first.department, "Mechanical")
        self.assertEqual(first.status, "Pending")
        self.assertEqual(second.overlapping_slots, ("10:30",))
        self.assertEqual(
            report.to_dict()["conflicts"][1],
            {
                "booking_id": 3,
                "title": "AI Talk",
                "department": "CSE",
                "status": "Approved",
                "overlapping_slots": ["10:30"],
            },
        )
        self.assertTrue(report.to_dict()["has_conflict"])

    def test_date_comparison_ignores_time_of_day(self):
        stored = [
            StoredBooking(1, HALL, datetime(2025, 3, 10, 23, 59), ["10:00"]),
            StoredBooking(2, HALL, "2025-03-10T00:00:00", ["10:00"]),
            StoredBooking(3, HALL, "2025-03-10", ["10:00"]),
        ]
        self.assertEqual(find_conflicts(draft(["10:00"]), stored).booking_ids, [1, 2, 3])

    def test_aware_timestamps_compare_on_the_local_day(self):
        # 20:00 UTC on the 9th is already the 10th in India.
        instant = datetime(2025, 3, 9, 20, 0, tzinfo=dt_timezone.utc)
        with timezone.override(ZoneInfo("Asia/Kolkata")):
            self.assertEqual(calendar_date(instant), DAY)
            report = find_conflicts(draft(["10:00"]), [StoredBooking(1, HALL, instant, ["10:00"])])
        self.assertEqual(report.booking_ids, [1])


class ResourceRamanujanHallScenarioTest(SimpleTestCase):
    """A pending booking of Ramanujan Hall on 2025-03-10 holding 10:00-11:00"""

    def setUp(self):
        self.existing = StoredBooking(1, HALL, DAY, ["10:00", "10:30"], event_title="Seminar")

    def test_overlap_at_ten_thirty(self):
        report = find_conflicts(draft(["10:30", "11:00"]), [self.existing])
        self.assertEqual(report.booking_ids, [1])
        self.assertEqual(report.entries[0].overlapping_slots, ("10:30",))

    def test_adjacent_slots_do_not_conflict(self):
        self.assertFalse(find_conflicts(draft(["11:00", "11:30"]), [self.existing]))

    def test_rejected_existing_booking_never_conflicts(self):
        self.existing.status = "Rejected"
        self.assertFalse(find_conflicts(draft(["10:00", "10:30"]), [self.existing]))


class BookingDraftTest(SimpleTestCase):
    def test_full_day_mode_takes_whole_sequence(self):
        full = BookingDraft.build(HALL, DAY, duration_type="full-day")
        self.assertEqual(sorted(full.slots), list(full_day_slots()))
        self.assertEqual(len(full.slots), 14)
        self.assertNotIn("13:00", full.slots)
        self.assertNotIn("13:30", full.slots)

    def test_custom_mode_requires_slots(self):
        with self.assertRaises(InvalidInput):
            BookingDraft.build(HALL, DAY, [])

    def test_custom_mode_rejects_break_slots(self):
        with self.assertRaises(InvalidInput):
            BookingDraft.build(HALL, DAY, ["13:30"])

    def test_booking_date_is_reduced_to_a_date(self):
        built = BookingDraft.build(HALL, "2025-03-10", ["09:00"])
        self.assertEqual(built.booking_date, DAY)
