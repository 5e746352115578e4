"""
Test helpers.

(c) Nikola Jajcay
"""


import os
import shutil
import tempfile
import unittest

import netCDF4 as nc
import numpy as np

FILL_VALUE = 1.0e20


class TestHelper(unittest.TestCase):
    """
    Helper class for single test case.
    """

    PATTERN_NC = ".nc"

    def compare_dates(self, dates, expected):
        """
        Compare calendar dates by their year, month and day.

        :param dates: dates to check
        :type dates: list[cftime.datetime]
        :param expected: expected (year, month, day) triplets
        :type expected: list[tuple[int]]
        """
        self.assertListEqual(
            [(date.year, date.month, date.day) for date in dates],
            [tuple(triplet) for triplet in expected],
        )


class TestHelperTempSave(TestHelper):
    """
    Helper that supports saving nc files in a temporary location and removing
    the temp on tear down.
    """

    @classmethod
    def setUpClass(cls):
        cls.temp_dir = tempfile.mkdtemp()

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.temp_dir)

    def write_nc(
        self,
        filename,
        field,
        lons,
        lats,
        time,
        time_units="days since 1920-01-01",
        calendar=None,
        variable="tas",
        dims=("time", "lat", "lon"),
        fill_value=FILL_VALUE,
        dtype="f4",
        attrs=None,
    ):
        """
        Writes gridded field into a netCDF file in the temporary directory.
        Values are written raw, without masking and scaling.

        :return: full path of the file
        :rtype: str
        """
        assert filename.endswith(self.PATTERN_NC), f"Unknown extension: {filename}"
        path = os.path.join(self.temp_dir, filename)
        coords = {"time": time, "lat": lats, "lon": lons}
        with nc.Dataset(path, "w") as ds:
            ds.set_auto_maskandscale(False)
            for name in ["time", "lat", "lon"]:
                ds.createDimension(name, len(coords[name]))
                coord = ds.createVariable(name, "f8", (name,))
                # zero-length time dimension is unlimited, nothing to write
                if len(coords[name]) > 0:
                    coord[:] = np.asarray(coords[name], dtype=float)
            ds["time"].units = time_units
            if calendar is not None:
                ds["time"].calendar = calendar
            ds["lat"].units = "degrees_north"
            ds["lon"].units = "degrees_east"

            var = ds.createVariable(variable, dtype, dims, fill_value=fill_value)
            var.set_auto_maskandscale(False)
            for key, value in (attrs or {}).items():
                var.setncattr(key, value)
            if np.asarray(field).size > 0:
                var[:] = np.asarray(field)

        return path
