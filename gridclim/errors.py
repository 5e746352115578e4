"""
Exceptions raised while extracting time series from gridded fields.

(c) Nikola Jajcay
"""


class GridClimError(Exception):
    """
    Base class for all gridclim errors.
    """


class DatasetOpenError(GridClimError, OSError):
    """
    File is missing, unreadable or lacks the coordinate or data variables.
    """

    def __init__(self, filename, reason):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Cannot open `{filename}`: {reason}")

    def __str__(self):
        return self.args[0]

    def __reduce__(self):
        return self.__class__, (self.filename, self.reason)


class VariableNotFoundError(GridClimError, KeyError):
    def __init__(self, filename, variable):
        self.filename = filename
        self.variable = variable
        super().__init__(f"Variable `{variable}` not found in `{filename}`")

    def __str__(self):
        return self.args[0]

    def __reduce__(self):
        return self.__class__, (self.filename, self.variable)


class TimeUnitsParseError(GridClimError, ValueError):
    """
    Time units string is not of the form `<unit> since <YYYY>-<MM>-<DD>`.
    """

    def __init__(self, units, reason):
        self.units = units
        self.reason = reason
        super().__init__(f"Cannot parse time units `{units}`: {reason}")

    def __reduce__(self):
        return self.__class__, (self.units, self.reason)


class TimeAxisOrderError(GridClimError, ValueError):
    pass


class DimensionMismatchError(GridClimError, ValueError):
    """
    Field dimensions do not match lengths of coordinates.
    """


class EmptyRegionError(GridClimError, ValueError):
    """
    No grid cell falls within the region bounds.
    """


class AllMissingError(GridClimError, ValueError):
    """
    Every selected cell is missing at some time step.
    """

    def __init__(self, time_indices):
        self.time_indices = list(time_indices)
        super().__init__(
            "All selected cells are missing at time indices "
            f"{self.time_indices}"
        )

    def __reduce__(self):
        return self.__class__, (self.time_indices,)
