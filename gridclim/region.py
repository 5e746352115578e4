"""
Regional selection and averaging of gridded fields into time series.

Region bounds must use the same longitude convention as the dataset (0 -- 360
or -180 -- 180), otherwise the selection is empty or wrong.

(c) Nikola Jajcay
"""

import logging
from collections import namedtuple

import numpy as np
import xarray as xr

from .errors import DimensionMismatchError, EmptyRegionError, AllMissingError
from .reader import DEFAULT_DIMS
from .time_axis import dataset_dates

__all__ = [
    "ALL_EAST",
    "MINUS_NOTATION",
    "RegionBounds",
    "TimeSeries",
    "average_over_region",
    "check_longitude_convention",
    "cos_lat_weights",
    "longitude_convention",
    "regional_time_series",
    "select_region",
    "shift_lons_to_all_east_notation",
    "shift_lons_to_minus_notation",
]

ALL_EAST = "0-360"
MINUS_NOTATION = "-180-180"


def shift_lons_to_minus_notation(lons):
    """
    Shift longitudes to minus notation, i.e. -180E -- 179E. Longitudes less
    than 0 are considered W.
    """
    return ((np.asarray(lons, dtype=float) + 180) % 360) - 180


def shift_lons_to_all_east_notation(lons):
    """
    Shift longitudes to 0 -- 360 notation. Longitudes > 180 are considered W.
    """
    return (np.asarray(lons, dtype=float) + 360) % 360


def longitude_convention(lons):
    """
    Return longitude convention of the coordinate, any negative longitude
    means minus notation.
    """
    if np.any(np.asarray(lons, dtype=float) < 0.0):
        return MINUS_NOTATION
    return ALL_EAST


class RegionBounds(
    namedtuple("RegionBounds", ["lon_min", "lon_max", "lat_min", "lat_max"])
):
    """
    Inclusive bounds of a region. When `lon_min` > `lon_max` the region wraps
    over the seam of the longitude convention, e.g. 350 -- 10 in 0 -- 360.
    """

    __slots__ = ()

    def to_convention(self, convention):
        """
        Return bounds with longitudes expressed in given convention. Bounds
        already within the convention's range are kept as they are.

        :param convention: `ALL_EAST` or `MINUS_NOTATION`
        :type convention: str
        :rtype: `RegionBounds`
        """
        if convention == ALL_EAST:
            low, high, shift = 0.0, 360.0, shift_lons_to_all_east_notation
        elif convention == MINUS_NOTATION:
            low, high, shift = -180.0, 180.0, shift_lons_to_minus_notation
        else:
            raise ValueError(
                f"`{convention}` not understood, use {ALL_EAST} or "
                f"{MINUS_NOTATION}"
            )
        lon_min, lon_max = [
            lon if low <= lon <= high else float(shift(lon))
            for lon in [self.lon_min, self.lon_max]
        ]
        return self._replace(lon_min=lon_min, lon_max=lon_max)


class TimeSeries(namedtuple("TimeSeries", ["dates", "values"])):
    """
    Regionally averaged time series: one value per date.
    """

    __slots__ = ()

    def __new__(cls, dates, values):
        dates = tuple(dates)
        values = np.array(values, dtype=float)
        values.setflags(write=False)
        if values.ndim != 1 or values.shape[0] != len(dates):
            raise DimensionMismatchError(
                f"Need one value per date, got {len(dates)} dates and values "
                f"of shape {values.shape}"
            )
        return super().__new__(cls, dates, values)

    def to_dataarray(self, name=None, attrs=None):
        """
        Return time series as xr.DataArray with (cftime) time coordinate.
        """
        return xr.DataArray(
            np.array(self.values),
            dims=["time"],
            coords={"time": list(self.dates)},
            name=name,
            attrs=attrs or {},
        )


def check_longitude_convention(longitude, bounds):
    """
    Warns when region bounds lie outside the longitude convention of the
    dataset.

    :return: whether bounds agree with the convention
    :rtype: bool
    """
    convention = longitude_convention(longitude)
    lons = [bounds.lon_min, bounds.lon_max]
    if convention == ALL_EAST and min(lons) < 0.0:
        logging.warning(
            f"Bounds {bounds} are in minus notation, but dataset longitudes "
            f"are {ALL_EAST}; use `RegionBounds.to_convention`"
        )
        return False
    if convention == MINUS_NOTATION and max(lons) > 180.0:
        logging.warning(
            f"Bounds {bounds} are in {ALL_EAST} notation, but dataset "
            f"longitudes are {MINUS_NOTATION}; use `RegionBounds.to_convention`"
        )
        return False
    return True


def select_region(longitude, latitude, bounds):
    """
    Selects indices of longitudes and latitudes within inclusive bounds. When
    nothing matches, the returned index array is empty.

    :param longitude: longitude coordinate
    :type longitude: np.ndarray
    :param latitude: latitude coordinate
    :type latitude: np.ndarray
    :param bounds: region bounds
    :type bounds: `RegionBounds`|tuple[float]
    :return: longitude indices, latitude indices
    :rtype: np.ndarray, np.ndarray
    """
    bounds = RegionBounds(*bounds)
    if bounds.lat_min > bounds.lat_max:
        raise ValueError(f"lat_min > lat_max in {bounds}")
    lons = np.asarray(longitude, dtype=float)
    lats = np.asarray(latitude, dtype=float)

    if bounds.lon_min <= bounds.lon_max:
        lon_mask = (lons >= bounds.lon_min) & (lons <= bounds.lon_max)
    else:
        # swapped bounds are easy to pass by mistake and select most of the
        # globe
        logging.warning(
            f"lon_min > lon_max in {bounds}, selecting band across the seam "
            f"outside {bounds.lon_max} -- {bounds.lon_min}"
        )
        lon_mask = (lons >= bounds.lon_min) | (lons <= bounds.lon_max)
    lat_mask = (lats >= bounds.lat_min) & (lats <= bounds.lat_max)

    lon_indices = np.flatnonzero(lon_mask)
    lat_indices = np.flatnonzero(lat_mask)
    if lon_indices.size == 0 or lat_indices.size == 0:
        logging.warning(f"No grid cells within {bounds}")
    return lon_indices, lat_indices


def cos_lat_weights(latitude):
    """
    Returns area weights based on cosine of latitude.
    """
    return np.cos(np.asarray(latitude, dtype=float) * np.pi / 180.0)


def average_over_region(
    field, lon_indices, lat_indices, fill_value=None, dims=DEFAULT_DIMS, weights=None
):
    """
    Averages field over selected cells at each time step. Cells equal to the
    fill value, or NaN, are missing and do not enter the mean.

    :param field: 3D field
    :type field: np.ndarray
    :param lon_indices: selected longitude indices
    :type lon_indices: np.ndarray
    :param lat_indices: selected latitude indices
    :type lat_indices: np.ndarray
    :param fill_value: sentinel of missing cells
    :type fill_value: float|None
    :param dims: axis order of the field as roles "time", "lat", "lon"
    :type dims: tuple[str]
    :param weights: optional weight per latitude, e.g. `cos_lat_weights`
    :type weights: np.ndarray|None
    :return: regional mean per time step
    :rtype: np.ndarray
    """
    lon_indices = np.asarray(lon_indices, dtype=int)
    lat_indices = np.asarray(lat_indices, dtype=int)
    if lon_indices.size == 0 or lat_indices.size == 0:
        raise EmptyRegionError(
            f"Empty region: {lon_indices.size} longitudes x "
            f"{lat_indices.size} latitudes selected"
        )

    field = np.asarray(field, dtype=float)
    dims = tuple(dims)
    if field.ndim != 3 or sorted(dims) != sorted(DEFAULT_DIMS):
        raise DimensionMismatchError(
            f"Need 3D field with dimensions {DEFAULT_DIMS} in any order, got "
            f"shape {field.shape} and dimensions {dims}"
        )
    field = np.transpose(field, [dims.index(dim) for dim in DEFAULT_DIMS])
    selected = field[:, lat_indices.reshape((-1, 1)), lon_indices]

    missing = np.isnan(selected)
    if fill_value is not None:
        missing |= selected == float(fill_value)
    all_missing = np.flatnonzero(missing.all(axis=(1, 2)))
    if all_missing.size > 0:
        raise AllMissingError(all_missing.tolist())

    if weights is None:
        cell_weights = np.ones(selected.shape[1:])
    else:
        weights = np.asarray(weights, dtype=float)
        assert weights.shape == (
            field.shape[1],
        ), f"Need one weight per latitude, got {weights.shape}"
        cell_weights = np.broadcast_to(
            weights[lat_indices, np.newaxis], selected.shape[1:]
        )
    cell_weights = np.where(missing, 0.0, cell_weights)

    total = np.where(missing, 0.0, selected * cell_weights).sum(axis=(1, 2))
    return total / cell_weights.sum(axis=(1, 2))


def regional_time_series(dataset, bounds, calendar, weighted=False):
    """
    Regional mean time series of `GridDataset`.

    :param dataset: gridded dataset
    :type dataset: `GridDataset`
    :param bounds: region bounds, in longitude convention of the dataset
    :type bounds: `RegionBounds`|tuple[float]
    :param calendar: calendar of the model time axis
    :type calendar: str
    :param weighted: whether to weight cells by cosine of latitude
    :type weighted: bool
    :rtype: `TimeSeries`
    """
    bounds = RegionBounds(*bounds)
    logging.info(
        f"Averaging `{dataset.variable}` over region {tuple(bounds)}..."
    )
    check_longitude_convention(dataset.longitude, bounds)
    dates = dataset_dates(dataset, calendar)

    lon_indices, lat_indices = select_region(
        dataset.longitude, dataset.latitude, bounds
    )
    if lon_indices.size == 0 or lat_indices.size == 0:
        raise EmptyRegionError(
            f"No grid cells of `{dataset.variable}` in {dataset.filename} "
            f"within {bounds}"
        )
    logging.debug(
        f"...selected {lat_indices.size} x {lon_indices.size} grid cells..."
    )
    if weighted:
        logging.debug("...cos-weighting...")

    values = average_over_region(
        dataset.field,
        lon_indices,
        lat_indices,
        fill_value=dataset.fill_value,
        dims=dataset.dims,
        weights=cos_lat_weights(dataset.latitude) if weighted else None,
    )
    return TimeSeries(dates, values)
