"""
Tests for regional selection and averaging.
"""

import unittest

import numpy as np
import pytest
import xarray as xr
from gridclim.errors import (
    AllMissingError,
    DimensionMismatchError,
    EmptyRegionError,
)
from gridclim.reader import GridDataset
from gridclim.region import (
    ALL_EAST,
    MINUS_NOTATION,
    RegionBounds,
    TimeSeries,
    average_over_region,
    check_longitude_convention,
    cos_lat_weights,
    longitude_convention,
    regional_time_series,
    select_region,
    shift_lons_to_all_east_notation,
    shift_lons_to_minus_notation,
)

from . import FILL_VALUE, TestHelper

DEFAULT_SEED = 42


class TestSelectRegion(unittest.TestCase):
    LONS = np.arange(200.625, 212.0, 1.25)
    LATS = np.arange(20.0, 35.0, 2.5)

    def test_select(self):
        lon_indices, lat_indices = select_region(
            self.LONS, self.LATS, RegionBounds(204.2, 208.3, 25.8, 30.4)
        )
        self.assertIn(int(np.flatnonzero(self.LONS == 204.375)[0]), lon_indices)
        self.assertIn(int(np.flatnonzero(self.LATS == 27.5)[0]), lat_indices)
        self.assertTrue(np.all(self.LONS[lon_indices] >= 204.2))
        self.assertTrue(np.all(self.LONS[lon_indices] <= 208.3))
        np.testing.assert_equal(self.LATS[lat_indices], [27.5, 30.0])

    def test_select_inclusive(self):
        lon_indices, lat_indices = select_region(
            self.LONS, self.LATS, (self.LONS[2], self.LONS[4], 22.5, 25.0)
        )
        np.testing.assert_equal(lon_indices, [2, 3, 4])
        np.testing.assert_equal(lat_indices, [1, 2])

    def test_select_descending_lats(self):
        lats = self.LATS[::-1]
        _, lat_indices = select_region(
            self.LONS, lats, RegionBounds(200.0, 210.0, 25.0, 30.0)
        )
        np.testing.assert_equal(lats[lat_indices], [30.0, 27.5, 25.0])

    def test_select_empty(self):
        lon_indices, lat_indices = select_region(
            self.LONS, self.LATS, RegionBounds(-155.8, -151.7, 25.8, 30.4)
        )
        self.assertEqual(lon_indices.size, 0)
        self.assertEqual(lat_indices.size, 2)

        field = np.ones((3, self.LATS.shape[0], self.LONS.shape[0]))
        with pytest.raises(EmptyRegionError):
            average_over_region(field, lon_indices, lat_indices)

    def test_select_across_seam(self):
        lons = np.arange(0.0, 360.0, 2.5)
        with self.assertLogs(level="WARNING") as logs:
            lon_indices, _ = select_region(
                lons, self.LATS, RegionBounds(355.0, 2.5, 20.0, 30.0)
            )
        self.assertIn("across the seam", logs.output[0])
        np.testing.assert_equal(lons[lon_indices], [0.0, 2.5, 355.0, 357.5])

    def test_select_invalid_lats(self):
        with pytest.raises(ValueError):
            select_region(self.LONS, self.LATS, RegionBounds(200, 210, 30, 20))


class TestLongitudeConvention(unittest.TestCase):
    def test_convention(self):
        self.assertEqual(longitude_convention([0.0, 180.0, 357.5]), ALL_EAST)
        self.assertEqual(longitude_convention([-10.0, 0.0, 10.0]), MINUS_NOTATION)

    def test_shift(self):
        np.testing.assert_allclose(
            shift_lons_to_minus_notation([0.0, 90.0, 204.375, 350.0]),
            [0.0, 90.0, -155.625, -10.0],
        )
        np.testing.assert_allclose(
            shift_lons_to_all_east_notation([-155.625, -10.0, 0.0, 20.0]),
            [204.375, 350.0, 0.0, 20.0],
        )

    def test_bounds_to_convention(self):
        bounds = RegionBounds(-155.8, -151.7, 25.8, 30.4)
        shifted = bounds.to_convention(ALL_EAST)
        self.assertAlmostEqual(shifted.lon_min, 204.2)
        self.assertAlmostEqual(shifted.lon_max, 208.3)
        self.assertEqual(shifted.lat_min, 25.8)
        self.assertTupleEqual(
            tuple(RegionBounds(10, 20, 0, 5).to_convention(MINUS_NOTATION)),
            (10, 20, 0, 5),
        )
        self.assertTupleEqual(
            tuple(RegionBounds(350, 10, 0, 5).to_convention(MINUS_NOTATION)),
            (-10.0, 10, 0, 5),
        )
        with pytest.raises(ValueError):
            bounds.to_convention("east")

    def test_check_warns(self):
        lons = np.arange(0.0, 360.0, 2.5)
        with self.assertLogs(level="WARNING"):
            self.assertFalse(
                check_longitude_convention(
                    lons, RegionBounds(-155.8, -151.7, 25.8, 30.4)
                )
            )
        with self.assertLogs(level="WARNING"):
            self.assertFalse(
                check_longitude_convention(
                    lons - 180.0, RegionBounds(204.2, 208.3, 25.8, 30.4)
                )
            )
        self.assertTrue(
            check_longitude_convention(lons, RegionBounds(204.2, 208.3, 25.8, 30.4))
        )


class TestAverageOverRegion(unittest.TestCase):
    def generate_field(self):
        np.random.seed(DEFAULT_SEED)
        return np.random.rand(6, 4, 5)

    def test_fill_value_excluded(self):
        field = np.full((2, 3, 3), 10.0)
        field[0, 1, 1] = FILL_VALUE
        values = average_over_region(
            field, [0, 1, 2], [0, 1, 2], fill_value=FILL_VALUE
        )
        np.testing.assert_equal(values, [10.0, 10.0])

    def test_nan_excluded(self):
        field = np.full((1, 2, 2), 4.0)
        field[0, 0, 1] = np.nan
        field[0, 1, 1] = 1.0
        values = average_over_region(field, [0, 1], [0, 1])
        self.assertAlmostEqual(values[0], 3.0)

    def test_mean(self):
        field = self.generate_field()
        values = average_over_region(field, [1, 2, 4], [0, 3])
        np.testing.assert_allclose(
            values, field[:, [0, 3], :][:, :, [1, 2, 4]].mean(axis=(1, 2))
        )

    def test_axis_order(self):
        field = self.generate_field()
        expected = average_over_region(field, [0, 2], [1, 2])
        transposed = average_over_region(
            field.transpose((2, 1, 0)), [0, 2], [1, 2], dims=("lon", "lat", "time")
        )
        np.testing.assert_allclose(transposed, expected)

        with pytest.raises(DimensionMismatchError):
            average_over_region(field, [0], [0], dims=("time", "lat", "lev"))
        with pytest.raises(DimensionMismatchError):
            average_over_region(field[0], [0], [0])

    def test_idempotent(self):
        field = self.generate_field()
        field[3, 2, 2] = -999.0
        first = average_over_region(field, [1, 2, 3], [1, 2], fill_value=-999.0)
        second = average_over_region(field, [1, 2, 3], [1, 2], fill_value=-999.0)
        np.testing.assert_equal(first, second)

    def test_all_missing(self):
        field = np.full((4, 2, 2), 1.0)
        field[1] = FILL_VALUE
        field[3, :, 0] = FILL_VALUE
        field[3, :, 1] = np.nan
        with pytest.raises(AllMissingError) as excinfo:
            average_over_region(field, [0, 1], [0, 1], fill_value=FILL_VALUE)
        self.assertListEqual(excinfo.value.time_indices, [1, 3])

        values = average_over_region(field[[0, 2]], [0, 1], [0, 1])
        np.testing.assert_equal(values, [1.0, 1.0])

    def test_weighted(self):
        lats = np.array([0.0, 60.0])
        field = np.zeros((1, 2, 1))
        field[0, 0, 0] = 1.0
        field[0, 1, 0] = 4.0
        values = average_over_region(
            field, [0], [0, 1], weights=cos_lat_weights(lats)
        )
        # weights 1 and 0.5
        self.assertAlmostEqual(values[0], 2.0)

        with pytest.raises(AssertionError):
            average_over_region(field, [0], [0, 1], weights=[1.0])


class TestRegionalTimeSeries(TestHelper):
    def make_dataset(self):
        field = np.full((3, 2, 3), 280.0)
        field[:, :, 0] = 300.0
        field[1, 0, 1] = FILL_VALUE
        return GridDataset(
            longitude=[350.0, 0.0, 10.0],
            latitude=[45.0, 50.0],
            time=[0.0, 31.0, 59.0],
            time_units="days since 2001-01-01",
            field=field,
            fill_value=FILL_VALUE,
            variable="tas",
            filename="synthetic.nc",
        )

    def test_regional_time_series(self):
        time_series = regional_time_series(
            self.make_dataset(), RegionBounds(355.0, 10.0, 40.0, 55.0), "noleap"
        )
        self.assertTrue(isinstance(time_series, TimeSeries))
        self.compare_dates(
            time_series.dates, [(2001, 1, 1), (2001, 2, 1), (2001, 3, 1)]
        )
        np.testing.assert_allclose(time_series.values, [280.0, 280.0, 280.0])
        self.assertFalse(time_series.values.flags.writeable)

        time_series = regional_time_series(
            self.make_dataset(), (340.0, 5.0, 40.0, 55.0), "standard"
        )
        # fill value at the second step sits in the cell at 0E
        np.testing.assert_allclose(
            time_series.values, [290.0, 880.0 / 3.0, 290.0]
        )

    def test_regional_time_series_empty(self):
        with pytest.raises(EmptyRegionError) as excinfo:
            regional_time_series(
                self.make_dataset(), RegionBounds(20.0, 30.0, 40.0, 55.0), "noleap"
            )
        self.assertIn("synthetic.nc", str(excinfo.value))

    def test_to_dataarray(self):
        time_series = regional_time_series(
            self.make_dataset(), RegionBounds(355.0, 10.0, 40.0, 55.0), "noleap"
        )
        da = time_series.to_dataarray(name="tas", attrs={"units": "K"})
        self.assertTrue(isinstance(da, xr.DataArray))
        self.assertTupleEqual(da.shape, (3,))
        self.assertEqual(da.attrs["units"], "K")
        np.testing.assert_equal(da.time.dt.month.values, [1, 2, 3])

    def test_time_series_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            TimeSeries(dates=[], values=[1.0])


if __name__ == "__main__":
    unittest.main()
