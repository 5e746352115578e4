"""
Annual mean near-surface temperature over Hawaii from a historical and a
future-scenario model run.

Usage: python regional_annual_means.py tas_historical.nc tas_rcp85.nc
"""

import logging
import sys

from gridclim import PipelineJob, RegionBounds, run_pipelines

logging.basicConfig(level=logging.INFO)

# 0 -- 360 longitudes, as in the model files
HAWAII = RegionBounds(lon_min=204.2, lon_max=208.3, lat_min=25.8, lat_max=30.4)

historical_file, scenario_file = sys.argv[1:3]
jobs = [
    PipelineJob(historical_file, "tas", HAWAII, calendar="noleap"),
    PipelineJob(scenario_file, "tas", HAWAII, calendar="noleap"),
]
historical, scenario = run_pipelines(jobs)

annual = historical.annual.concat(scenario.annual)
for year, value in zip(annual.year, annual.mean_value):
    print(f"{year}: {value:.2f} {historical.units}")

for name, result in [("historical", historical), ("scenario", scenario)]:
    if result.trend is not None:
        print(f"{name} trend: {result.trend.slope * 100:.2f} {result.units} / century")
