"""
Extraction pipeline: gridded file -> regional time series -> annual means.
Independent files (e.g. historical and scenario runs) are processed by
independent pipeline runs, optionally in parallel.

(c) Nikola Jajcay
"""

import logging
from collections import namedtuple
from multiprocessing import cpu_count

from pathos.multiprocessing import Pool

from .annual import annual_trend, to_annual_means
from .reader import open_dataset
from .region import RegionBounds, regional_time_series
from .time_axis import extract_day_month_year

__all__ = ["PipelineJob", "PipelineResult", "run_pipeline", "run_pipelines"]

PipelineJob = namedtuple(
    "PipelineJob",
    [
        "filename",
        "variable",
        "bounds",
        "calendar",
        "lon_name",
        "lat_name",
        "time_name",
        "weighted",
        "slice_index",
    ],
    defaults=["lon", "lat", "time", False, 0],
)
PipelineJob.__doc__ = """
Parameters of one pipeline run.

:param filename: filename of nc file
:param variable: name of the gridded variable
:param bounds: region bounds in longitude convention of the file
:param calendar: calendar of the model time axis, e.g. "standard", "noleap"
:param lon_name: name of the longitude coordinate
:param lat_name: name of the latitude coordinate
:param time_name: name of the time coordinate
:param weighted: whether to weight the regional mean by cosine of latitude
:param slice_index: time index of the spatial slice, None for no slice
"""

PipelineResult = namedtuple(
    "PipelineResult",
    [
        "job",
        "time_series",
        "annual",
        "trend",
        "spatial_slice",
        "units",
        "long_name",
    ],
)


def run_pipeline(job):
    """
    Runs the whole extraction for one file.

    :param job: pipeline parameters
    :type job: `PipelineJob`
    :return: regional time series, annual means, their trend (None for a
        single year) and spatial slice (None for an empty time axis)
    :rtype: `PipelineResult`
    """
    logging.info(f"Running pipeline for `{job.variable}` from {job.filename}...")
    dataset = open_dataset(
        job.filename,
        job.variable,
        lon_name=job.lon_name,
        lat_name=job.lat_name,
        time_name=job.time_name,
    )
    time_series = regional_time_series(
        dataset, RegionBounds(*job.bounds), job.calendar, weighted=job.weighted
    )
    annual = to_annual_means(time_series)
    trend = annual_trend(annual) if annual.year.shape[0] > 1 else None
    n_time = dataset.shape[dataset.axis("time")]
    if job.slice_index is None or n_time == 0:
        spatial_slice = None
    else:
        spatial_slice = dataset.time_slice(job.slice_index)

    if len(time_series.dates) > 0:
        day, month, year = extract_day_month_year(time_series.dates)
        logging.info(
            "Data from %s processed with shape %s. Date range is %d.%d.%d - "
            "%d.%d.%d inclusive."
            % (
                job.filename,
                str(dataset.shape),
                day[0],
                month[0],
                year[0],
                day[-1],
                month[-1],
                year[-1],
            )
        )

    return PipelineResult(
        job=job,
        time_series=time_series,
        annual=annual,
        trend=trend,
        spatial_slice=spatial_slice,
        units=dataset.units,
        long_name=dataset.long_name,
    )


def run_pipelines(jobs, workers=None):
    """
    Runs independent pipelines, in parallel when `workers` > 1. Results keep
    the order of jobs.

    :param jobs: pipeline parameters
    :type jobs: list[`PipelineJob`]
    :param workers: number of processes, None for number of CPUs
    :type workers: int|None
    :rtype: list[`PipelineResult`]
    """
    jobs = list(jobs)
    workers = workers or min(cpu_count(), len(jobs))
    if workers <= 1 or len(jobs) <= 1:
        return [run_pipeline(job) for job in jobs]

    logging.info(f"Running {len(jobs)} pipelines using {workers} processes...")
    pool = Pool(workers)
    try:
        results = pool.map(run_pipeline, jobs)
    finally:
        pool.close()
        pool.join()
    return results
