import unittest

import pytest

from rxfire import fire_science as fs
from rxfire.domain import BurnQuality, DispersionCategory


class TestFuelMoisture(unittest.TestCase):
    def test_heavier_fuels_dry_toward_emc(self):
        temp, humidity = 70.0, 35.0
        emc = fs.equilibrium_moisture_content(temp, humidity)
        prev = fs.calculate_fuel_moisture(temp, humidity, 0)
        for days in range(1, 30):
            cur = fs.calculate_fuel_moisture(temp, humidity, days)
            self.assertLessEqual(cur.ten_hour, prev.ten_hour)
            self.assertLessEqual(cur.hundred_hour, prev.hundred_hour)
            self.assertGreaterEqual(cur.ten_hour, emc)
            prev = cur

    def test_day_of_rain_starts_at_asymptote(self):
        fm = fs.calculate_fuel_moisture(70.0, 35.0, 0)
        self.assertAlmostEqual(fm.ten_hour, 25.0)
        self.assertAlmostEqual(fm.hundred_hour, 35.0)  # 40% clamped to the ceiling

    def test_one_hour_is_emc(self):
        fm = fs.calculate_fuel_moisture(70.0, 35.0, 3)
        self.assertAlmostEqual(fm.one_hour, 2.22749 + 0.160107 * 35 - 0.01478 * 70)

    def test_negative_days_since_rain_clamps_instead_of_overflowing(self):
        fm = fs.calculate_fuel_moisture(70.0, 35.0, -5000)
        self.assertEqual(fm.ten_hour, 35.0)
        self.assertEqual(fm.hundred_hour, 35.0)
        # above both asymptotes the heavier fuels pin to the dry bound
        humid = fs.calculate_fuel_moisture(40.0, 100.0, -5000)
        self.assertEqual(humid.ten_hour, 1.0)

    def test_emc_branches(self):
        self.assertAlmostEqual(fs.equilibrium_moisture_content(60, 10), 0.03229 + 2.81073 - 0.3468)
        self.assertAlmostEqual(fs.equilibrium_moisture_content(60, 50), 2.22749 + 8.00535 - 0.8868)
        self.assertAlmostEqual(
            fs.equilibrium_moisture_content(60, 80),
            21.0606 + 0.005565 * 6400 - 0.00035 * 4800 - 0.483199 * 80,
        )


@pytest.mark.parametrize(
    "temp,humidity,wind",
    [
        (200, -50, 0),
        (-60, 150, 80),
        (200, 0, 100),
        (-40, 100, 0),
        (60, 40, 8),
    ],
)
def test_indices_stay_in_range_for_extreme_inputs(temp, humidity, wind):
    ffmc = fs.calculate_ffmc(temp, humidity, wind)
    assert 0 <= ffmc <= 100

    fm = fs.calculate_fuel_moisture(temp, humidity, 3)
    for value in (fm.one_hour, fm.ten_hour, fm.hundred_hour):
        assert 1 <= value <= 35

    assert 0 <= fs.calculate_ignition_probability(fm.one_hour) <= 100

    result = fs.assess_burn_window(temp, humidity, wind, wind * 2, 100, 0)
    assert 0 <= result.score <= 100


class TestBurnScore(unittest.TestCase):
    def test_ideal_conditions_score_100(self):
        result = fs.assess_burn_window(60, 40, 8, 10, 3000, 45000)
        self.assertEqual(result.score, 100)
        self.assertEqual(result.quality, BurnQuality.EXCELLENT)

    def test_gust_penalty(self):
        calm = fs.assess_burn_window(60, 40, 8, 10, 3000, 45000)
        gusty = fs.assess_burn_window(60, 40, 8, 30, 3000, 45000)
        self.assertEqual(calm.score - gusty.score, 15)

    def test_low_mixing_height_penalty(self):
        result = fs.assess_burn_window(60, 40, 8, 10, 1000, 45000)
        self.assertEqual(result.score, 90)
        self.assertEqual(result.quality, BurnQuality.EXCELLENT)

    def test_partial_ventilation(self):
        # VI halfway between 20000 and 40000 earns half the ventilation points
        result = fs.assess_burn_window(60, 40, 8, 10, 3000, 30000)
        self.assertEqual(result.score, 88)
        self.assertEqual(result.quality, BurnQuality.GOOD)

    def test_quality_labels(self):
        self.assertEqual(fs.burn_quality_label(90), BurnQuality.EXCELLENT)
        self.assertEqual(fs.burn_quality_label(89.9), BurnQuality.GOOD)
        self.assertEqual(fs.burn_quality_label(50), BurnQuality.FAIR)
        self.assertEqual(fs.burn_quality_label(30), BurnQuality.MARGINAL)
        self.assertEqual(fs.burn_quality_label(29), BurnQuality.POOR)
        self.assertEqual(fs.burn_quality_label(-5), BurnQuality.POOR)


@pytest.mark.parametrize(
    "overrides,expected",
    [
        ({"temp": 35}, 88),
        ({"temp": 85}, 88),
        ({"temp": 29}, 75),
        ({"temp": 91}, 75),
        ({"humidity": 25}, 88),
        ({"humidity": 60}, 88),
        ({"humidity": 19}, 75),
        ({"humidity": 66}, 75),
        ({"wind_speed": 3}, 88),
        ({"wind_speed": 18}, 85),
        ({"wind_speed": 21}, 75),
        ({"wind_speed": 1}, 75),
    ],
)
def test_sub_score_ramps(overrides, expected):
    inputs = dict(temp=60, humidity=40, wind_speed=8, wind_gust=10, mixing_height_ft=3000, ventilation_index=45000)
    inputs.update(overrides)
    assert fs.assess_burn_window(**inputs).score == expected


class TestDispersion(unittest.TestCase):
    def test_afternoon_doubles_night_adjusted_vi(self):
        day = fs.determine_dispersion_category(3000, 15, 13)
        night = fs.determine_dispersion_category(3000, 15, 2)
        self.assertEqual(day.adjusted_vi, 45000)
        self.assertEqual(night.adjusted_vi, 22500)
        self.assertEqual(day.adjusted_vi, 2 * night.adjusted_vi)
        self.assertEqual(day.category, DispersionCategory.GOOD)
        self.assertEqual(night.category, DispersionCategory.FAIR)

    def test_stability_factor_bands(self):
        self.assertEqual(fs.stability_factor(10), 1.0)
        self.assertEqual(fs.stability_factor(15), 1.0)
        self.assertEqual(fs.stability_factor(7), 0.8)
        self.assertEqual(fs.stability_factor(18), 0.8)
        self.assertEqual(fs.stability_factor(19), 0.5)
        self.assertEqual(fs.stability_factor(0), 0.5)

    def test_negative_vi_is_very_poor(self):
        result = fs.determine_dispersion_category(-100, 10, 12)
        self.assertEqual(result.category, DispersionCategory.VERY_POOR)
        self.assertIn("Do NOT burn", result.description)

    def test_ventilation_index_rounds(self):
        self.assertEqual(fs.calculate_ventilation_index(3000, 15), 45000)
        self.assertEqual(fs.calculate_ventilation_index(1000.5, 1), 1001)


def test_kbdi_trend_and_ffmc():
    assert fs.calculate_kbdi_trend(60, 100) == 0
    assert fs.calculate_kbdi_trend(80, 20) == 170
    assert fs.calculate_ffmc(60, 45, 0) == 85


def test_fire_index_warnings():
    assert fs.fire_index_warnings(80, 3) == []

    extreme = fs.fire_index_warnings(93, 6)
    assert [w.index for w in extreme] == ["FFMC", "Haines"]
    assert extreme[0].message == "EXTREME ignition potential"
    assert extreme[1].message == "Elevated fire potential"

    very_high = fs.fire_index_warnings(90, 2)
    assert very_high[0].message == "Very high ignition potential"


if __name__ == "__main__":
    unittest.main()
