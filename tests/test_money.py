import unittest
from decimal import Decimal

from carhub.money import first_money, is_money, parse_money, service_revenue, to_float


class TestMoneyParsing(unittest.TestCase):

    def test_well_formed_strings(self):
        self.assertEqual(parse_money("150.00"), Decimal("150.00"))
        self.assertEqual(parse_money("7"), Decimal("7"))
        self.assertEqual(parse_money(" 12.5 "), Decimal("12.5"))

    def test_malformed_values_are_zero(self):
        for value in (None, "", "abc", "1,50", "-3.00", "1.234", "1e3", "NaN", True, [], {}):
            with self.subTest(value=value):
                self.assertFalse(is_money(value))
                self.assertEqual(parse_money(value), Decimal("0"))

    def test_numbers(self):
        self.assertEqual(parse_money(Decimal("99.90")), Decimal("99.90"))
        self.assertEqual(parse_money(10), Decimal("10"))
        self.assertEqual(parse_money(0.5), Decimal("0.5"))
        self.assertEqual(parse_money(float("inf")), Decimal("0"))
        self.assertEqual(parse_money(Decimal("NaN")), Decimal("0"))
        self.assertEqual(parse_money(-1), Decimal("0"))

    def test_first_money_skips_zero_and_garbage(self):
        self.assertEqual(first_money(None, "0.00", "x", "20.00"), Decimal("20.00"))
        self.assertEqual(first_money(None, None), Decimal("0"))

    def test_service_revenue_prefers_final_value(self):
        self.assertEqual(service_revenue("180.00", "150.00"), Decimal("180.00"))
        self.assertEqual(service_revenue(None, "150.00"), Decimal("150.00"))
        self.assertEqual(service_revenue("0", "150.00"), Decimal("150.00"))
        self.assertEqual(service_revenue("bad", None), Decimal("0"))

    def test_to_float_rounds_to_cents(self):
        self.assertEqual(to_float(Decimal("10.005")), 10.01)
        self.assertEqual(to_float(Decimal("3")), 3.0)


if __name__ == '__main__':
    unittest.main()
