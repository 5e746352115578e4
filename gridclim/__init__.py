"""
created on Oct 16, 2026

@author: Nikola Jajcay, jajcay(at)cs.cas.cz
"""

from .annual import *
from .errors import *
from .pipeline import *
from .reader import *
from .region import *
from .time_axis import *

__all__ = ['annual', 'errors', 'pipeline', 'reader', 'region', 'time_axis']
__author__ = "Nikola Jajcay <jajcay@cs.cas.cz>"
__copyright__ = \
    "Copyright (C) 2014-2026 Nikola Jajcay"
__license__ = "MIT"
__url__ = "https://github.com/jajcayn/gridclim"
__version__ = "0.1"
