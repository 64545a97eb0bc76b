#
# Best rational approximation of a Float by continued fractions
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import math
from fractions import Fraction

from . import backend
from .context import get_context, MIN_PRECISION
from .tower import Float, box_integer, box_rational, exact_ratio, to_float


__all__ = ('approximate', )


def approximate(value, err=None):
    '''Return the simplest rational whose relative error from value is within a bound.

    value is a Float; other reals are first converted exactly.  With err None the bound is
    2**-precision where precision is that of value.  A positive err is the bound itself.
    A negative err requests -err bits of precision, which must lie between 2 and the
    precision of value.  The value is rounded to the working precision first.

    Returns an Integer if the denominator is 1, otherwise a Rational.
    '''
    if not isinstance(value, Float):
        value = to_float(value, 1)
    precision = value.precision

    err_sign = 0
    if err is not None:
        err = Fraction(*exact_ratio(err))
        err_sign = (err > 0) - (err < 0)
    if err_sign < 0:
        precision = round(-err)
    if err_sign <= 0 and not MIN_PRECISION <= precision <= value.precision:
        raise ValueError(f'requested precision {precision} out of bounds: must be between '
                         f'{MIN_PRECISION} and {value.precision}')
    bound = err if err_sign > 0 else Fraction(1, 1 << precision)

    raw = backend.normalize_to(value._value, precision, get_context().backend_rounding)
    numerator, denominator = backend.mpf_as_integer_ratio(raw)
    if numerator == 0:
        return box_integer(0)
    negative = numerator < 0
    target = Fraction(abs(numerator), denominator)

    # Successive convergents p/q, the last three of each kept
    remainder = target
    term = math.floor(remainder)
    q = [0, 0, 1]
    p = [0, 1, term]
    error = abs(target - term) / target
    while error > bound:
        fraction = remainder - term
        if not fraction:
            break
        remainder = 1 / fraction
        term = math.floor(remainder)
        q = [q[1], q[2], q[2] * term + q[1]]
        p = [p[1], p[2], p[2] * term + p[1]]
        new_error = abs(target - Fraction(p[2], q[2])) / target
        if new_error >= error:
            # No improvement; the previous convergent is the answer
            p[2], q[2] = p[1], q[1]
            break
        error = new_error

    numerator = -p[2] if negative else p[2]
    if q[2] == 1:
        return box_integer(numerator)
    return box_rational(numerator, q[2])
