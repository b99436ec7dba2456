import unittest

from agentmem.date_utils import parse_timestamp_ms


class ParseTimestampMsTests(unittest.TestCase):
    def test_parses_zulu_timestamps(self) -> None:
        self.assertEqual(parse_timestamp_ms("1970-01-01T00:00:01.500Z"), 1500)

    def test_parses_offsets(self) -> None:
        self.assertEqual(
            parse_timestamp_ms("2025-10-01T19:11:14+02:00"),
            parse_timestamp_ms("2025-10-01T17:11:14Z"),
        )

    def test_fraction_lengths_other_than_three_or_six_digits(self) -> None:
        self.assertEqual(parse_timestamp_ms("1970-01-01T00:00:01.5Z"), 1500)
        self.assertEqual(parse_timestamp_ms("1970-01-01T00:00:01.1234567Z"), 1123)
        self.assertEqual(parse_timestamp_ms("1970-01-01T02:00:01.25+02:00"), 1250)

    def test_naive_timestamps_are_utc(self) -> None:
        self.assertEqual(
            parse_timestamp_ms("2025-10-01T17:11:14"),
            parse_timestamp_ms("2025-10-01T17:11:14Z"),
        )

    def test_date_only_is_midnight_utc(self) -> None:
        self.assertEqual(parse_timestamp_ms("1970-01-02"), 86_400_000)

    def test_invalid_values_yield_none(self) -> None:
        for raw in (None, "", "   ", "yesterday", 12345, {"t": 1}):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_timestamp_ms(raw))


if __name__ == "__main__":
    unittest.main()
