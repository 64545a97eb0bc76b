#
# A multi-precision numeric tower: Integer, Rational, Float and Complex
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

from .context import *
from .cache import get_cache, set_cache
from .backend import ResultCode
from .tower import *
from .dispatch import compare, power, sqrt
from .binary import *
from .approx import *


__version__ = '0.1.0'
