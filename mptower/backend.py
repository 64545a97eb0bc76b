#
# Entry points into the arithmetic backend.  Integers and rationals are Python ints;
# floats and complexes are raw mpmath.libmp values.  Every rounded float entry point
# returns the rounded value together with the direction it was rounded in.
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import operator
import sys
from enum import IntEnum
from math import isqrt

from mpmath.libmp import (
    fzero, fone, from_int, from_man_exp, from_float, from_rational,
    to_float, to_int, normalize, mpf_add, mpf_sub, mpf_mul, mpf_div, mpf_sqrt, mpf_cmp,
    mpf_neg, mpf_shift, mpf_pow, mpf_pow_int, mpc_pow, mpc_pow_int, mpc_sqrt, round_nearest,
    round_ceiling, round_floor,
)


__all__ = ('ResultCode', 'WORD_MAX', 'WORD_OPERATIONS')

# The magnitude of the largest integer that fits a signed machine word
WORD_MAX = sys.maxsize


class ResultCode(IntEnum):
    '''How a rounded result compares with the infinitely precise one.  The values are the
    result-code byte of the binary format.'''
    EXACT = 0
    ROUNDED_UP = 1
    ROUNDED_DOWN = 2

    @classmethod
    def from_cmp(cls, cmp):
        '''Convert the comparison of rounded with exact to a result code.'''
        if cmp > 0:
            return cls.ROUNDED_UP
        if cmp < 0:
            return cls.ROUNDED_DOWN
        return cls.EXACT

    def negate(self):
        if self == ResultCode.EXACT:
            return self
        return ResultCode.ROUNDED_DOWN if self == ResultCode.ROUNDED_UP \
            else ResultCode.ROUNDED_UP


# Integers a machine word wide go straight to these, bypassing coercion.
WORD_OPERATIONS = {
    'add': operator.add,
    'sub': operator.sub,
    'mul': operator.mul,
}


#
# Integers
#

def int_floordiv(a, b):
    return a // b


def int_mod(a, b):
    return a % b


def int_divmod(a, b):
    return divmod(a, b)


def int_pow(base, exponent, modulus=None):
    if modulus is None:
        return base ** exponent
    return pow(base, exponent, modulus)


#
# Rationals.  Results are (numerator, denominator) pairs that the caller canonicalizes.
#

def rational_add(a, b):
    return a[0] * b[1] + b[0] * a[1], a[1] * b[1]


def rational_sub(a, b):
    return a[0] * b[1] - b[0] * a[1], a[1] * b[1]


def rational_mul(a, b):
    return a[0] * b[0], a[1] * b[1]


def rational_div(a, b):
    return a[0] * b[1], a[1] * b[0]


def rational_floordiv(a, b):
    return (a[0] * b[1]) // (a[1] * b[0])


def rational_mod(a, b):
    quotient = rational_floordiv(a, b)
    return a[0] * b[1] - quotient * b[0] * a[1], a[1] * b[1]


def rational_pow(a, exponent):
    '''Raise a rational to an integer power.  The base must be non-zero if exponent is
    negative.'''
    numerator, denominator = a
    if exponent < 0:
        numerator, denominator = denominator, numerator
        exponent = -exponent
    return numerator ** exponent, denominator ** exponent


#
# Floats
#

def mpf_sign(value):
    '''Return -1, 0 or 1.'''
    sign, man, _exp, _bc = value
    if not man:
        return 0
    return -1 if sign else 1


def mpf_is_zero(value):
    return not value[1]


def mpf_exponent(value):
    '''Return the exponent e of a non-zero value written as 0.1xxx * 2^e.'''
    _sign, _man, exp, bc = value
    return exp + bc


def mpf_as_integer_ratio(value):
    '''Return the exact value as a pair (numerator, denominator) with a positive power-of-two
    denominator.'''
    sign, man, exp, _bc = value
    man = int(man)
    if sign:
        man = -man
    if exp >= 0:
        return man << exp, 1
    return man, 1 << -exp


def mpf_is_integral(value):
    _sign, man, exp, _bc = value
    return not man or exp >= 0


def mpf_from_man_exp(man, exp):
    '''The exact value man * 2^exp.'''
    return from_man_exp(man, exp)


def mpf_from_float(value):
    '''A finite Python float as an exact raw value.'''
    return from_float(value)


def mpf_to_float(value, rounding):
    '''Convert to the nearest Python float under rounding.  Raises OverflowError if too
    large.'''
    return to_float(value, True, rounding)


def mpf_to_int(value, rounding=None):
    '''Convert to an integer, truncating unless a rounding mode is given.'''
    return int(to_int(value, rounding))


def mpf_negate(value):
    return mpf_neg(value)


def round_exact(exact, prec, rounding):
    '''Round an exact raw value to prec bits.  Return a pair (rounded, result_code).'''
    sign, man, exp, bc = exact
    if not man:
        return fzero, ResultCode.EXACT
    if bc <= prec:
        return exact, ResultCode.EXACT
    rounded = normalize(sign, man, exp, bc, prec, rounding)
    return rounded, ResultCode.from_cmp(mpf_cmp(rounded, exact))


def float_from_int(value, prec, rounding):
    return round_exact(from_int(value), prec, rounding)


def float_from_rational(numerator, denominator, prec, rounding):
    '''Round numerator / denominator, with denominator positive, to prec bits.'''
    if denominator == 1:
        return float_from_int(numerator, prec, rounding)
    result = from_rational(numerator, denominator, prec, rounding)
    product = mpf_mul(result, from_int(denominator))
    return result, ResultCode.from_cmp(mpf_cmp(product, from_int(numerator)))


def float_add(lhs, rhs, prec, rounding):
    return round_exact(mpf_add(lhs, rhs), prec, rounding)


def float_sub(lhs, rhs, prec, rounding):
    return round_exact(mpf_sub(lhs, rhs), prec, rounding)


def float_mul(lhs, rhs, prec, rounding):
    return round_exact(mpf_mul(lhs, rhs), prec, rounding)


def float_div(lhs, rhs, prec, rounding):
    '''Return lhs / rhs rounded.  rhs must be non-zero.'''
    quotient = mpf_div(lhs, rhs, prec, rounding)
    cmp = mpf_cmp(mpf_mul(quotient, rhs), lhs)
    if rhs[0]:
        cmp = -cmp
    return quotient, ResultCode.from_cmp(cmp)


def float_floordiv_exact(lhs, rhs):
    '''Return floor(lhs / rhs) as an integer.  rhs must be non-zero.'''
    a, b = mpf_as_integer_ratio(lhs)
    c, d = mpf_as_integer_ratio(rhs)
    return (a * d) // (b * c)


def float_floordiv(lhs, rhs, prec, rounding):
    return float_from_int(float_floordiv_exact(lhs, rhs), prec, rounding)


def float_mod(lhs, rhs, prec, rounding):
    '''Return lhs - rhs * floor(lhs / rhs) rounded; the sign follows rhs.'''
    quotient = float_floordiv_exact(lhs, rhs)
    exact = mpf_sub(lhs, mpf_mul(rhs, from_int(quotient)))
    return round_exact(exact, prec, rounding)


def float_sqrt(value, prec, rounding):
    '''Square root of a non-negative value.'''
    root = mpf_sqrt(value, prec, rounding)
    return root, ResultCode.from_cmp(mpf_cmp(mpf_mul(root, root), value))


def mpf_pow_exact(value, exponent):
    '''value ** exponent exactly, for a non-negative integer exponent.'''
    sign, man, exp, _bc = value
    man = int(man)
    if sign:
        man = -man
    return from_man_exp(man ** exponent, exp * exponent)


# Extra bits first used to find the rounding direction of results the backend cannot
# compute exactly.  They double until the direction is certain.
_DIRECTION_BITS = 32
# Integer powers whose exact result would exceed this many bits are left to the backend
_EXACT_POWER_BITS = 1 << 20


def _separated(result, reference, working):
    '''True if result differs from reference, a value computed to working bits, by more
    than the error of the reference.'''
    if mpf_is_zero(reference):
        return not mpf_is_zero(result)
    difference = mpf_sub(result, reference)
    if mpf_is_zero(difference):
        return False
    return mpf_exponent(difference) - mpf_exponent(reference) > 2 - working


def _direction(result, reference_at, prec, limit=None):
    '''Return the ResultCode of result, a rounding to prec bits of a value that
    reference_at(working) computes to working bits.

    The working precision grows until result and the reference are clearly apart.  Without
    a limit the value must be known to differ from result.  With one, None is returned if
    they still agree once the working precision reaches it.
    '''
    extra = _DIRECTION_BITS
    while True:
        working = prec + extra
        reference = reference_at(working)
        if _separated(result, reference, working):
            return ResultCode.from_cmp(mpf_cmp(result, reference))
        if limit is not None and working >= limit:
            return None
        extra *= 2


def _pow_guard(base, exponent):
    '''Extra bits needed for base ** exponent computed as exp(exponent * log(base)) to hold
    its working precision.  base and exponent are sequences of raw components.'''
    scale = max([mpf_exponent(part) for part in exponent if not mpf_is_zero(part)] + [0])
    size = max([abs(mpf_exponent(part)).bit_length() for part in base if not mpf_is_zero(part)]
               + [0])
    return scale + size + 4


def _is_exact_root_power(result, base, p, k):
    '''Return True if result is exactly base ** (p / 2**k), where base is positive, p is
    odd and k >= 1.'''
    _, a, e, _ = base
    sign, b, f, b_bits = result
    a, b = int(a), int(b)
    if sign or not b:
        return False
    # Powers of two: e * p / 2**k must be an integer equal to f
    if e:
        if (e & -e).bit_length() - 1 < k or f != (e >> k) * p:
            return False
    elif f:
        return False
    # Odd parts: a must be c ** 2**k with c ** p == b.  If c > 1 then c >= 3, so a has more
    # than 2**k bits and b more than p bits.
    if k >= a.bit_length():
        return a == 1 and b == 1
    if p < 0:
        return False
    for _ in range(k):
        root = isqrt(a)
        if root * root != a:
            return False
        a = root
    if p * (a.bit_length() - 1) >= b_bits:
        return False
    return a ** p == b


def float_pow_int(value, exponent, prec, rounding):
    '''Raise to an integer power.  value must be non-zero if exponent is negative.'''
    sign, man, exp, bc = value
    if abs(exponent) * bc <= _EXACT_POWER_BITS:
        if exponent >= 0:
            return round_exact(mpf_pow_exact(value, exponent), prec, rounding)
        return float_div(fone, mpf_pow_exact(value, -exponent), prec, rounding)
    if man == 1:
        # A power of two
        power = from_man_exp(-1 if sign and exponent & 1 else 1, exp * exponent)
        return round_exact(power, prec, rounding)
    if exponent > 0 and exponent * (bc - 1) < prec:
        # The odd mantissa is at least 3, so its power has fewer than 2 * prec bits
        return round_exact(mpf_pow_exact(value, exponent), prec, rounding)

    # An odd mantissa above 1 raised to such a power cannot fit prec bits
    result = mpf_pow_int(value, exponent, prec, rounding)
    rc = _direction(result, lambda working: mpf_pow_int(value, exponent, working,
                                                        round_nearest), prec)
    return result, rc


def float_pow(base, exponent, prec, rounding):
    '''Raise to a real power.  A negative base requires an integral exponent.

    The backend rounds but reports no direction.  A non-integral exponent is p / 2**k for
    odd p, so exactness is decided with integers, and the direction of an inexact result
    comes from references of growing precision.
    '''
    if mpf_is_integral(exponent):
        return float_pow_int(base, mpf_to_int(exponent), prec, rounding)
    guard = _pow_guard((base, ), (exponent, ))
    result = normalize_to(mpf_pow(base, exponent, prec + guard + _DIRECTION_BITS, round_nearest),
                          prec, rounding)
    sign, man, exp, _bc = exponent
    if _is_exact_root_power(result, base, -int(man) if sign else int(man), -exp):
        return result, ResultCode.EXACT
    rc = _direction(result, lambda working: mpf_pow(base, exponent, working + guard,
                                                    round_nearest), prec)
    return result, rc


#
# Complexes.  Values are (real, imag) pairs of raw floats; precisions and result codes
# are likewise pairs.
#

def _round_pair(exact_real, exact_imag, precs, rounding):
    real, real_rc = round_exact(exact_real, precs[0], rounding)
    imag, imag_rc = round_exact(exact_imag, precs[1], rounding)
    return (real, imag), (real_rc, imag_rc)


def complex_add(lhs, rhs, precs, rounding):
    return _round_pair(mpf_add(lhs[0], rhs[0]), mpf_add(lhs[1], rhs[1]), precs, rounding)


def complex_sub(lhs, rhs, precs, rounding):
    return _round_pair(mpf_sub(lhs[0], rhs[0]), mpf_sub(lhs[1], rhs[1]), precs, rounding)


def _complex_mul_exact(lhs, rhs):
    a, b = lhs
    c, d = rhs
    return (mpf_sub(mpf_mul(a, c), mpf_mul(b, d)),
            mpf_add(mpf_mul(a, d), mpf_mul(b, c)))


def complex_mul(lhs, rhs, precs, rounding):
    real, imag = _complex_mul_exact(lhs, rhs)
    return _round_pair(real, imag, precs, rounding)


def complex_is_zero(value):
    return mpf_is_zero(value[0]) and mpf_is_zero(value[1])


def complex_div(lhs, rhs, precs, rounding):
    '''Return lhs / rhs.  rhs must be non-zero.  Each component is rounded once.'''
    a, b = lhs
    c, d = rhs
    denominator = mpf_add(mpf_mul(c, c), mpf_mul(d, d))
    real_num = mpf_add(mpf_mul(a, c), mpf_mul(b, d))
    imag_num = mpf_sub(mpf_mul(b, c), mpf_mul(a, d))
    real, real_rc = float_div(real_num, denominator, precs[0], rounding)
    imag, imag_rc = float_div(imag_num, denominator, precs[1], rounding)
    return (real, imag), (real_rc, imag_rc)


def complex_abs(value, prec, rounding):
    real, imag = value
    return float_sqrt(mpf_add(mpf_mul(real, real), mpf_mul(imag, imag)), prec, rounding)


def _pair_directions(result, reference_at, precs, exact):
    '''Return the ResultCodes of a complex result whose components were rounded to precs.
    reference_at(working) computes the value to working bits.

    exact[i] is True if component i is known exact, False if known inexact and None if
    unknown.  An unknown component that agrees with references to four times its precision
    gives None.
    '''
    codes = []
    for index, known in enumerate(exact):
        if known:
            codes.append(ResultCode.EXACT)
            continue
        prec = precs[index]
        limit = None if known is False else 4 * prec + 8 * _DIRECTION_BITS
        codes.append(_direction(result[index], lambda working: reference_at(working)[index],
                                prec, limit))
    return tuple(codes)


def _round_components(value, precs, rounding):
    '''Round an approximate complex value, computed to more than precs bits, to precs.'''
    return normalize_to(value[0], precs[0], rounding), normalize_to(value[1], precs[1], rounding)


def _complex_pow_exact(value, exponent):
    '''value ** exponent exactly by repeated squaring, for a non-negative exponent.'''
    result = (fone, fzero)
    square = value
    while exponent:
        if exponent & 1:
            result = _complex_mul_exact(result, square)
        exponent >>= 1
        if exponent:
            square = _complex_mul_exact(square, square)
    return result


def _complex_pow_int_exact(value, exponent, precs, rounding):
    result = _complex_pow_exact(value, abs(exponent))
    if exponent < 0:
        return complex_div((fone, fzero), result, precs, rounding)
    return _round_pair(result[0], result[1], precs, rounding)


# i ** n for n modulo 4
_I_POWERS = ((1, 0), (0, 1), (-1, 0), (0, -1))
# The rounding mode that rounds -x as the given mode rounds x
_MIRRORED = {round_ceiling: round_floor, round_floor: round_ceiling}


def _axis_pow_int(value, exponent, precs, rounding):
    '''Raise a non-zero value with a zero component to an integer power.  The power of
    x * i**j is x ** exponent * i**(j * exponent), so it too has a zero component.'''
    real, imag = value
    j, x = (0, real) if mpf_is_zero(imag) else (1, imag)
    unit = _I_POWERS[(j * exponent) % 4]
    index = 0 if unit[0] else 1
    if unit[index] < 0:
        power, rc = float_pow_int(x, exponent, precs[index],
                                  _MIRRORED.get(rounding, rounding))
        power, rc = mpf_neg(power), rc.negate()
    else:
        power, rc = float_pow_int(x, exponent, precs[index], rounding)
    raws, rcs = [fzero, fzero], [ResultCode.EXACT, ResultCode.EXACT]
    raws[index], rcs[index] = power, rc
    return tuple(raws), tuple(rcs)


def _gaussian(value):
    '''Return integers (a, b, e) with value == (a + b*i) * 2**e.'''
    e = min(part[2] for part in value if not mpf_is_zero(part))
    a, b = (mpf_as_integer_ratio(mpf_shift(part, -e))[0] for part in value)
    return a, b, e


def _unit_power(value, exponent):
    '''Return value ** exponent exactly if value is a unit times powers of 1+i and 2,
    otherwise None.  Such powers stay small however large the exponent.'''
    a, b, e = _gaussian(value)
    t = 0
    # Divide by 1+i while it divides
    while (a - b) & 1 == 0:
        a, b = (a + b) >> 1, (b - a) >> 1
        t += 1
    if abs(a) + abs(b) != 1:
        return None
    j = _I_POWERS.index((a, b))
    # (1+i)**2 == 2i
    q, r = divmod(t * exponent, 2)
    c, d = _I_POWERS[(q + j * exponent) % 4]
    if r:
        c, d = c - d, c + d
    shift = e * exponent + q
    return from_man_exp(c, shift), from_man_exp(d, shift)


def complex_pow_int(value, exponent, precs, rounding):
    '''Raise to an integer power, rounding each component once.  value must be non-zero if
    exponent is negative.

    Small powers are computed exactly.  Large ones are exact when value lies on an axis or
    is a unit times powers of 1+i and 2; otherwise the backend computes them and the
    directions come from references of growing precision.
    '''
    real, imag = value
    if abs(exponent) * max(real[3], imag[3]) <= _EXACT_POWER_BITS:
        return _complex_pow_int_exact(value, exponent, precs, rounding)
    if mpf_is_zero(real) or mpf_is_zero(imag):
        return _axis_pow_int(value, exponent, precs, rounding)
    power = _unit_power(value, exponent)
    if power is not None:
        return _round_pair(power[0], power[1], precs, rounding)

    guard = _pow_guard(value, (from_int(exponent), ))
    approx = mpc_pow_int(value, exponent, max(precs) + guard + _DIRECTION_BITS, round_nearest)
    result = _round_components(approx, precs, rounding)
    rcs = _pair_directions(result, lambda working: mpc_pow_int(value, exponent, working + guard,
                                                               round_nearest),
                           precs, (None, None))
    if None in rcs:
        # Too close to call with references
        return _complex_pow_int_exact(value, exponent, precs, rounding)
    return result, rcs


def _is_exact_complex_root_power(result, base, exponent):
    '''Return True if exponent is real, p / 2**k, and result ** 2**k == base ** p exactly.
    Returns False, deciding nothing, when those powers are too large to compute.'''
    if not mpf_is_zero(exponent[1]):
        return False
    sign, man, exp, _bc = exponent[0]
    k, p = -exp, int(man)
    result_bits = max(part[3] for part in result)
    base_bits = max(part[3] for part in base)
    if k > 20 or result_bits << k > _EXACT_POWER_BITS or p * base_bits > _EXACT_POWER_BITS:
        return False
    lhs = result
    for _ in range(k):
        lhs = _complex_mul_exact(lhs, lhs)
    rhs = _complex_pow_exact(base, p)
    if sign:
        lhs, rhs = _complex_mul_exact(lhs, rhs), (fone, fzero)
    return all(mpf_cmp(x, y) == 0 for x, y in zip(lhs, rhs))


def complex_pow(base, exponent, precs, rounding):
    '''Raise to a complex power.  base must be non-zero.

    The whole result is proven exact when base is 1, or the exponent is real and
    result ** 2**k == base ** p can be checked.  Otherwise directions come from references
    of growing precision.  A component agreeing with them to four times its precision is
    taken as exact, as for the exactly zero imaginary part of (-1) ** 1j.
    '''
    if mpf_is_zero(exponent[1]) and mpf_is_integral(exponent[0]):
        return complex_pow_int(base, mpf_to_int(exponent[0]), precs, rounding)
    guard = _pow_guard(base, exponent)
    approx = mpc_pow(base, exponent, max(precs) + guard + _DIRECTION_BITS, round_nearest)
    result = _round_components(approx, precs, rounding)
    if (mpf_cmp(base[0], fone) == 0 and mpf_is_zero(base[1])
            or _is_exact_complex_root_power(result, base, exponent)):
        exact = (True, True)
    else:
        exact = (None, None)
    rcs = _pair_directions(result, lambda working: mpc_pow(base, exponent, working + guard,
                                                           round_nearest),
                           precs, exact)
    return result, tuple(ResultCode.EXACT if rc is None else rc for rc in rcs)


def _sqrt_exactness(value, root):
    '''Return a pair saying whether each component of root is exactly that of the principal
    square root of value.

    For u + vi the root of a + bi, u*u == (|z| + a) / 2 and v*v == (|z| - a) / 2, so 2u*u - a
    and 2v*v + a are non-negative with square a*a + b*b.  u is non-negative and v has the
    sign of b, or is non-negative if b is zero.
    '''
    a, b = value
    u, v = root
    norm = mpf_add(mpf_mul(a, a), mpf_mul(b, b))

    def is_modulus(twice_square):
        return (mpf_sign(twice_square) >= 0
                and mpf_cmp(mpf_mul(twice_square, twice_square), norm) == 0)

    real_exact = (mpf_sign(u) >= 0
                  and is_modulus(mpf_sub(mpf_shift(mpf_mul(u, u), 1), a)))
    b_sign, v_sign = mpf_sign(b), mpf_sign(v)
    imag_exact = ((v_sign == b_sign or (b_sign == 0 and v_sign > 0))
                  and is_modulus(mpf_add(mpf_shift(mpf_mul(v, v), 1), a)))
    return real_exact, imag_exact


def complex_sqrt(value, precs, rounding):
    '''The principal square root.  Each component is checked for exactness by squaring, and
    directions are found as for float_pow.'''
    result = _round_components(mpc_sqrt(value, max(precs) + _DIRECTION_BITS, round_nearest),
                               precs, rounding)
    rcs = _pair_directions(result, lambda working: mpc_sqrt(value, working, round_nearest),
                           precs, _sqrt_exactness(value, result))
    return result, rcs


def normalize_to(value, prec, rounding):
    '''Round a raw value to prec bits, discarding the direction.'''
    return round_exact(value, prec, rounding)[0]
