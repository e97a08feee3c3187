import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from starfm.models import Session, Track
from starfm.ratings import RatingStore, validate_rating

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
EARLIER_THIS_MONTH = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)
LAST_SUMMER = datetime(2026, 8, 10, 12, 0, tzinfo=timezone.utc)


class _StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = RatingStore(Path(self._tmp.name) / "nested" / "ratings.sqlite3")

    def tearDown(self) -> None:
        self.store.close()
        self._tmp.cleanup()


class TestTrackRatings(_StoreTestCase):
    def test_rate_update_and_clear(self) -> None:
        created = self.store.set_track_rating("Queen", "A Night at the Opera", "Bohemian Rhapsody", 4, now=LAST_SUMMER)
        self.assertEqual(created.rating, 4)
        self.assertEqual(created.track_id, "queen-a night at the opera-bohemian rhapsody")

        updated = self.store.set_track_rating(" queen ", "a night at the opera", "BOHEMIAN RHAPSODY", 5, now=NOW)
        self.assertEqual(updated.rating, 5)
        self.assertEqual(updated.created_at, LAST_SUMMER)
        self.assertEqual(updated.updated_at, NOW)
        self.assertEqual(updated.track_name, "Bohemian Rhapsody")
        self.assertEqual(len(self.store.list_track_ratings()), 1)

        self.assertIsNone(self.store.set_track_rating("Queen", "A Night at the Opera", "Bohemian Rhapsody", 0))
        self.assertEqual(self.store.list_track_ratings(), [])
        self.assertIsNone(self.store.rating_for_track("Queen", "A Night at the Opera", "Bohemian Rhapsody"))

    def test_clearing_unrated_track_is_a_no_op(self) -> None:
        self.assertIsNone(self.store.set_track_rating("A", "B", "C", None))
        self.assertEqual(self.store.list_track_ratings(), [])

    def test_out_of_range_ratings_are_rejected(self) -> None:
        for rating in (-1, 6, True, "3"):
            with self.subTest(rating=rating):
                with self.assertRaises(ValueError):
                    self.store.set_track_rating("A", "B", "C", rating)
        self.assertEqual(validate_rating(0), None)
        self.assertEqual(validate_rating(3), 3)

    def test_ratings_for_live_tracks(self) -> None:
        self.store.set_track_rating("Queen", "A Night at the Opera", "Love of My Life", 3)
        tracks = [
            Track(name="Bohemian Rhapsody", artist="Queen", album="A Night at the Opera", images=[]),
            Track(name="love of my life ", artist="QUEEN", album="A Night at the Opera", images=[], timestamp="1"),
        ]
        self.assertEqual(self.store.ratings_for_tracks(tracks), [None, 3])

    def test_album_track_average(self) -> None:
        self.store.set_track_rating("Queen", "A Night at the Opera", "One", 5)
        self.store.set_track_rating("Queen", "A Night at the Opera", "Two", 2)
        self.store.set_track_rating("Queen", "News of the World", "Three", 1)
        self.assertAlmostEqual(self.store.album_track_average("queen", "a night at the opera"), 3.5)
        self.assertIsNone(self.store.album_track_average("Queen", "Jazz"))

    def test_album_track_average_uses_derived_identity(self) -> None:
        self.store.set_track_rating(" Queen ", "A Night at the Opera", "Bohemian Rhapsody", 5)
        self.assertEqual(self.store.rating_for_track("Queen", "A Night at the Opera", "Bohemian Rhapsody"), 5)
        self.assertAlmostEqual(self.store.album_track_average("Queen", "A Night at the Opera"), 5.0)


class TestAlbumRatings(_StoreTestCase):
    def test_rate_and_clear(self) -> None:
        record = self.store.set_album_rating("Queen", "A Night at the Opera", 5)
        self.assertEqual(record.album_id, "queen-a night at the opera")
        self.assertEqual(self.store.rating_for_album("QUEEN", "a night at the opera"), 5)
        self.store.set_album_rating("Queen", "A Night at the Opera", None)
        self.assertIsNone(self.store.rating_for_album("Queen", "A Night at the Opera"))


class TestSession(_StoreTestCase):
    def test_save_load_clear(self) -> None:
        self.assertIsNone(self.store.get_session())
        self.store.save_session(Session(username="u", key="k"))
        self.assertEqual(self.store.get_session(), Session(username="u", key="k"))
        self.store.save_session(Session(username="v", key="k2"))
        self.assertEqual(self.store.get_session(), Session(username="v", key="k2"))
        self.store.clear_session()
        self.assertIsNone(self.store.get_session())


class TestStats(_StoreTestCase):
    def test_only_current_month_counts(self) -> None:
        self.store.set_track_rating("Queen", "Opera", "One", 5, now=EARLIER_THIS_MONTH)
        self.store.set_track_rating("Queen", "Opera", "Two", 4, now=NOW)
        self.store.set_track_rating("Queen", "Opera", "Old", 1, now=LAST_SUMMER)

        stats = self.store.stats(now=NOW)
        self.assertEqual(stats.count, 2)
        self.assertAlmostEqual(stats.average, 4.5)
        self.assertEqual(stats.distribution, {1: 0, 2: 0, 3: 0, 4: 1, 5: 1})
        self.assertEqual([record.track_name for record in stats.five_star], ["One"])
        self.assertEqual((stats.period_start.year, stats.period_start.month, stats.period_start.day), (2026, 10, 1))

    def test_empty_month(self) -> None:
        self.store.set_album_rating("Queen", "Opera", 3, now=LAST_SUMMER)
        stats = self.store.stats(albums=True, now=NOW)
        self.assertEqual(stats.count, 0)
        self.assertIsNone(stats.average)
        self.assertEqual(stats.five_star, [])

    def test_five_star_list_is_capped(self) -> None:
        for idx in range(12):
            self.store.set_album_rating("Artist", f"Album {idx}", 5, now=NOW)
        stats = self.store.stats(albums=True, now=NOW)
        self.assertEqual(stats.count, 12)
        self.assertEqual(len(stats.five_star), 10)


if __name__ == "__main__":
    unittest.main()
