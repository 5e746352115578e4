"""
Annual resampling of regional time series and their linear trend.

(c) Nikola Jajcay
"""

from collections import namedtuple

import numpy as np
import pandas as pd
from scipy import stats

from .errors import DimensionMismatchError

__all__ = ["AnnualSeries", "Trend", "annual_trend", "to_annual_means"]


class AnnualSeries(namedtuple("AnnualSeries", ["year", "mean_value"])):
    """
    One mean value per calendar year, years ascending and unique.
    """

    __slots__ = ()

    def __new__(cls, year, mean_value):
        year = np.array(year, dtype=int)
        mean_value = np.array(mean_value, dtype=float)
        if year.ndim != 1 or year.shape != mean_value.shape:
            raise DimensionMismatchError(
                f"Need one value per year, got years of shape {year.shape} "
                f"and values of shape {mean_value.shape}"
            )
        if np.any(np.diff(year) <= 0):
            raise ValueError(f"Years have to be ascending and unique: {year}")
        year.setflags(write=False)
        mean_value.setflags(write=False)
        return super().__new__(cls, year, mean_value)

    def concat(self, other):
        """
        Joins two annual series, e.g. historical and scenario run.

        :param other: series with no year in common with this one
        :type other: `AnnualSeries`
        :rtype: `AnnualSeries`
        """
        common = np.intersect1d(self.year, other.year)
        if common.size > 0:
            raise ValueError(f"Cannot join series, overlapping years {common}")
        year = np.concatenate([self.year, other.year])
        order = np.argsort(year)
        return AnnualSeries(
            year[order], np.concatenate([self.mean_value, other.mean_value])[order]
        )

    def to_series(self):
        return pd.Series(
            np.array(self.mean_value), index=pd.Index(self.year, name="year")
        )


class Trend(
    namedtuple("Trend", ["slope", "intercept", "rvalue", "pvalue", "stderr"])
):
    """
    Least-squares linear trend, slope in units per year.
    """

    __slots__ = ()

    def evaluate(self, years):
        return self.intercept + self.slope * np.asarray(years, dtype=float)


def to_annual_means(time_series):
    """
    Groups time series by calendar year of its dates and averages each year.

    :param time_series: regional time series
    :type time_series: `TimeSeries`
    :rtype: `AnnualSeries`
    """
    years = np.array([date.year for date in time_series.dates], dtype=int)
    grouped = (
        pd.Series(np.array(time_series.values, dtype=float))
        .groupby(years)
        .mean()
    )
    return AnnualSeries(grouped.index.values, grouped.values)


def annual_trend(annual_series):
    """
    Linear trend of annual means.

    :param annual_series: annual means, at least two years
    :type annual_series: `AnnualSeries`
    :rtype: `Trend`
    """
    if annual_series.year.shape[0] < 2:
        raise ValueError(
            f"Need at least two years for a trend, got {annual_series.year}"
        )
    result = stats.linregress(annual_series.year, annual_series.mean_value)
    return Trend(
        slope=result.slope,
        intercept=result.intercept,
        rvalue=result.rvalue,
        pvalue=result.pvalue,
        stderr=result.stderr,
    )
