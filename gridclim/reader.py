"""
Reader for gridded spatio-temporal fields stored in netCDF files. The field is
read raw (no CF decoding), so time values stay in their model encoding and
fill values remain visible as sentinels.

(c) Nikola Jajcay
"""

import logging
from collections import namedtuple

import numpy as np
import xarray as xr

from .errors import (
    DatasetOpenError,
    DimensionMismatchError,
    TimeUnitsParseError,
    VariableNotFoundError,
)

__all__ = [
    "DEFAULT_DIMS",
    "GridDataset",
    "GridDatasetReader",
    "SpatialSlice",
    "open_dataset",
]

# canonical axis order of gridded fields: time first
DEFAULT_DIMS = ("time", "lat", "lon")

SpatialSlice = namedtuple(
    "SpatialSlice", ["index", "latitude", "longitude", "values"]
)


def _read_only(array, dtype=float):
    array = np.array(array, dtype=dtype)
    array.setflags(write=False)
    return array


class GridDataset:
    """
    Class holds gridded field of one variable together with its coordinates
    and attributes. Instances are immutable.
    """

    def __init__(
        self,
        longitude,
        latitude,
        time,
        time_units,
        field,
        dims=DEFAULT_DIMS,
        fill_value=None,
        units=None,
        long_name=None,
        variable=None,
        filename=None,
        calendar=None,
    ):
        """
        :param longitude: longitude coordinate
        :type longitude: np.ndarray
        :param latitude: latitude coordinate
        :type latitude: np.ndarray
        :param time: raw time values, in units given by `time_units`
        :type time: np.ndarray
        :param time_units: time encoding as `<unit> since <date>`
        :type time_units: str
        :param field: 3D field
        :type field: np.ndarray
        :param dims: axis order of the field as roles "time", "lat", "lon"
        :type dims: tuple[str]
        :param fill_value: sentinel for missing cells, None if undefined
        :type fill_value: float|None
        :param units: units of the field
        :type units: str|None
        :param long_name: descriptive name of the field
        :type long_name: str|None
        :param variable: name of the variable in the file
        :type variable: str|None
        :param filename: file the field was read from
        :type filename: str|None
        :param calendar: calendar attribute of time in the file, informative
        :type calendar: str|None
        """
        self._longitude = _read_only(longitude)
        self._latitude = _read_only(latitude)
        self._time = _read_only(time)
        for name, coord in zip(
            ["longitude", "latitude", "time"],
            [self._longitude, self._latitude, self._time],
        ):
            if coord.ndim != 1:
                raise DimensionMismatchError(
                    f"Coordinate {name} has to be 1D, got shape {coord.shape}"
                )

        dims = tuple(dims)
        if sorted(dims) != sorted(DEFAULT_DIMS):
            raise DimensionMismatchError(
                f"Field dimensions must be {DEFAULT_DIMS} in any order, "
                f"got {dims}"
            )
        self._field = _read_only(field)
        expected_shape = tuple(self._coord_length(dim) for dim in dims)
        if self._field.shape != expected_shape:
            raise DimensionMismatchError(
                f"Field of shape {self._field.shape} does not match "
                f"coordinates {dict(zip(dims, expected_shape))}"
            )
        self._dims = dims

        self._time_units = time_units
        self._fill_value = None if fill_value is None else float(fill_value)
        self._units = units
        self._long_name = long_name
        self._variable = variable
        self._filename = filename
        self._calendar = calendar

    def _coord_length(self, dim):
        return {
            "time": self._time.shape[0],
            "lat": self._latitude.shape[0],
            "lon": self._longitude.shape[0],
        }[dim]

    def __repr__(self):
        return (
            f"<GridDataset {self._variable or ''} "
            f"{dict(zip(self._dims, self._field.shape))}>"
        )

    @property
    def longitude(self):
        return self._longitude

    @property
    def latitude(self):
        return self._latitude

    @property
    def time(self):
        return self._time

    @property
    def time_units(self):
        return self._time_units

    @property
    def field(self):
        return self._field

    @property
    def dims(self):
        return self._dims

    @property
    def fill_value(self):
        return self._fill_value

    @property
    def units(self):
        return self._units

    @property
    def long_name(self):
        return self._long_name

    @property
    def variable(self):
        return self._variable

    @property
    def filename(self):
        return self._filename

    @property
    def calendar(self):
        return self._calendar

    @property
    def shape(self):
        return self._field.shape

    def axis(self, dim):
        """
        Return axis number of the field for dimension role `dim`.
        """
        return self._dims.index(dim)

    def transposed(self, dims=DEFAULT_DIMS):
        """
        Return field with axes in given order (a read-only view).

        :param dims: target order of "time", "lat", "lon"
        :type dims: tuple[str]
        :return: transposed field
        :rtype: np.ndarray
        """
        return np.transpose(self._field, [self.axis(dim) for dim in dims])

    def missing_mask(self):
        """
        Boolean mask of missing cells, i.e. equal to fill value or NaN.
        """
        mask = np.isnan(self._field)
        if self._fill_value is not None:
            mask |= self._field == self._fill_value
        return mask

    def time_slice(self, index):
        """
        Spatial slice of the field at one time index with missing cells set to
        NaN. Values are ordered (lat, lon).

        :param index: time index
        :type index: int
        :return: spatial slice
        :rtype: `SpatialSlice`
        """
        n_time = self._field.shape[self.axis("time")]
        if not -n_time <= index < n_time:
            raise IndexError(
                f"Time index {index} out of range for {n_time} time steps of "
                f"`{self._variable}` in {self._filename}"
            )
        values = np.where(
            self.missing_mask(), np.nan, self._field
        ).transpose([self.axis(dim) for dim in DEFAULT_DIMS])[index]
        return SpatialSlice(
            index=index,
            latitude=self._latitude,
            longitude=self._longitude,
            values=_read_only(values),
        )


class GridDatasetReader:
    """
    Scoped reader of one netCDF file. Use as a context manager, the file
    handle is released on every exit path.
    """

    def __init__(self, filename, lon_name="lon", lat_name="lat", time_name="time"):
        self.filename = filename
        self.coord_names = {"lon": lon_name, "lat": lat_name, "time": time_name}
        self._handle = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    @property
    def is_open(self):
        return self._handle is not None

    def open(self):
        """
        Opens the file and checks coordinate variables are present.
        """
        if self._handle is not None:
            return
        try:
            handle = xr.open_dataset(
                self.filename, engine="netcdf4", decode_cf=False
            )
        except FileNotFoundError:
            raise DatasetOpenError(self.filename, "no such file") from None
        except (OSError, ValueError) as exc:
            raise DatasetOpenError(self.filename, str(exc)) from exc

        missing = [
            name
            for name in self.coord_names.values()
            if name not in handle.variables
        ]
        if missing:
            handle.close()
            raise DatasetOpenError(
                self.filename, f"missing coordinate variables {missing}"
            )
        self._handle = handle
        logging.debug(f"...opened {self.filename}...")

    def close(self):
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            logging.debug(f"...closed {self.filename}...")

    def _get(self, name):
        if self._handle is None:
            raise DatasetOpenError(self.filename, "reader is not open")
        if name not in self._handle.variables:
            raise VariableNotFoundError(self.filename, name)
        return self._handle.variables[name]

    def get_variable(self, name):
        """
        Return raw values of a variable.

        :param name: variable name
        :type name: str
        :rtype: np.ndarray
        """
        return np.asarray(self._get(name).values)

    def get_attribute(self, variable_name, attribute_name):
        """
        Return attribute of a variable, or None if the attribute is absent.
        Present falsy values (e.g. fill value of 0) are returned as they are.
        """
        return self._get(variable_name).attrs.get(attribute_name)

    def read(self, variable):
        """
        Reads variable with its coordinates into `GridDataset`. Packed
        variables are unpacked using `scale_factor` and `add_offset`.

        :param variable: name of the data variable
        :type variable: str
        :rtype: `GridDataset`
        """
        logging.info(f"Reading `{variable}` from {self.filename}...")
        field = self.get_variable(variable).astype(float)

        roles = {name: role for role, name in self.coord_names.items()}
        var_dims = self._get(variable).dims
        if len(var_dims) != 3 or any(dim not in roles for dim in var_dims):
            raise DimensionMismatchError(
                f"`{variable}` in {self.filename} has dimensions {var_dims}, "
                f"expected {tuple(self.coord_names.values())} in any order"
            )
        dims = tuple(roles[dim] for dim in var_dims)

        time_name = self.coord_names["time"]
        time_units = self.get_attribute(time_name, "units")
        if time_units is None:
            raise TimeUnitsParseError(
                "", f"`{time_name}` in {self.filename} has no units attribute"
            )

        # harmonize missing and fill values: `_FillValue` is kept as the
        # sentinel, cells with any other `missing_value` become NaN
        sentinels = [
            float(value)
            for name in ["_FillValue", "missing_value"]
            if self.get_attribute(variable, name) is not None
            for value in np.atleast_1d(self.get_attribute(variable, name))
        ]
        fill_value = sentinels[0] if sentinels else None
        other_sentinels = [value for value in sentinels if value != fill_value]
        if other_sentinels:
            logging.debug(f"...masking missing values {other_sentinels}...")
            field[np.isin(field, other_sentinels)] = np.nan

        scale_factor = self.get_attribute(variable, "scale_factor")
        add_offset = self.get_attribute(variable, "add_offset")
        if scale_factor is not None or add_offset is not None:
            logging.debug("...unpacking with scale factor and offset...")
            if fill_value is not None:
                field[field == fill_value] = np.nan
            if scale_factor is not None:
                field = field * float(scale_factor)
            if add_offset is not None:
                field = field + float(add_offset)
            # missing cells are NaN now, the packed sentinel means nothing
            # for unpacked values
            fill_value = None

        try:
            dataset = GridDataset(
                longitude=self.get_variable(self.coord_names["lon"]),
                latitude=self.get_variable(self.coord_names["lat"]),
                time=self.get_variable(time_name),
                time_units=str(time_units),
                field=field,
                dims=dims,
                fill_value=fill_value,
                units=self.get_attribute(variable, "units"),
                long_name=self.get_attribute(variable, "long_name"),
                variable=variable,
                filename=self.filename,
                calendar=self.get_attribute(time_name, "calendar"),
            )
        except DimensionMismatchError as exc:
            raise DimensionMismatchError(f"{self.filename}: {exc}") from exc

        logging.debug(f"...read field with shape {dict(zip(dims, field.shape))}")
        return dataset


def open_dataset(filename, variable, lon_name="lon", lat_name="lat", time_name="time"):
    """
    Opens netCDF file, reads one variable and closes the file. A file without
    the variable fails to open like a file without coordinates, i.e. with
    `DatasetOpenError`.

    :param filename: filename of nc file
    :type filename: str
    :param variable: which variable to load
    :type variable: str
    :rtype: `GridDataset`
    """
    with GridDatasetReader(
        filename, lon_name=lon_name, lat_name=lat_name, time_name=time_name
    ) as reader:
        try:
            return reader.read(variable)
        except VariableNotFoundError as exc:
            raise DatasetOpenError(
                filename, f"missing data variable `{variable}`"
            ) from exc
