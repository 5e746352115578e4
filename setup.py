from setuptools import setup


def readme():
    with open("README.rst") as f:
        return f.read()


setup(
    name="gridclim",
    version="0.1",
    description="Regional time series from gridded climate model output",
    long_description=readme(),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Atmospheric Science",
        "License :: OSI Approved :: MIT License",
    ],
    keywords="climate model netcdf regional mean time series calendar",
    url="https://github.com/jajcayn/gridclim",
    author="Nikola Jajcay",
    author_email="jajcay@cs.cas.cz",
    license="MIT",
    packages=["gridclim"],
    python_requires=">=3.7",
    install_requires=[
        "numpy",
        "scipy",
        "pandas",
        "xarray",
        "netCDF4",
        "cftime",
        "pathos",
    ],
    extras_require={"test": ["pytest"]},
    include_package_data=True,
    zip_safe=False,
)
