import unittest

from dayslot.model import TimeWindow
from dayslot.windows import DEFAULT_WINDOWS, TimeWindowCatalog


class TestTimeWindowCatalogContract(unittest.TestCase):
    def test_defaults_search_morning_afternoon_evening(self) -> None:
        cat = TimeWindowCatalog(DEFAULT_WINDOWS)
        self.assertEqual([w.period for w in cat.enabled_by_priority()], ["morning", "afternoon", "evening"])
        self.assertEqual(len(cat), 4)

    def test_disabled_windows_are_kept_but_not_searched(self) -> None:
        cat = TimeWindowCatalog(DEFAULT_WINDOWS)
        cat.set_enabled("afternoon", False)
        cat.set_enabled("dawn", True)
        self.assertEqual([w.period for w in cat.enabled_by_priority()], ["morning", "evening", "dawn"])
        self.assertIn("afternoon", [w.period for w in cat])

    def test_equal_priorities_keep_catalog_order(self) -> None:
        cat = TimeWindowCatalog(
            [
                TimeWindow("b", 600, 700, priority=2),
                TimeWindow("a", 300, 400, priority=1),
                TimeWindow("c", 800, 900, priority=2),
            ]
        )
        self.assertEqual([w.period for w in cat.enabled_by_priority()], ["a", "b", "c"])

    def test_unknown_period_raises(self) -> None:
        with self.assertRaises(KeyError):
            TimeWindowCatalog(DEFAULT_WINDOWS).set_enabled("brunch", True)

    def test_from_hours(self) -> None:
        w = TimeWindow.from_hours("evening", 18, 24, priority=3)
        self.assertEqual((w.start_min, w.end_min, w.length_min), (1080, 1440, 360))
        self.assertTrue(w.enabled)


if __name__ == "__main__":
    unittest.main(verbosity=2)
