#
# The boxed numeric kinds Integer, Rational, Float and Complex, the numeric classifier
# and the coercion engine
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import math
import numbers
import operator
import sys
from decimal import Decimal
from enum import IntEnum
from fractions import Fraction
from math import ceil, gcd, log2

import attr
from mpmath.libmp import fzero

from . import backend
from .backend import ResultCode
from .cache import Kind, acquire, release
from .context import (
    get_context, BACKEND_ROUNDING, GUARD_BITS, MIN_PRECISION,
    ROUND_HALF_EVEN, DivisionByZero, Inexact, Overflow, Underflow,
)
from .text import (
    FormatSpec, check_base, digits_to_str, format_real, int_to_digits, parse_integer,
    parse_real, split_complex, to_digits,
)


__all__ = ('Integer', 'Rational', 'Float', 'Complex', 'NumberClass', 'classify',
           'to_integer', 'to_rational', 'to_float', 'to_complex')


# Operation names
OP_CONVERT = 'convert'
OP_FROM_STRING = 'from_string'
OP_ABS = '__abs__'

# The precision of a Python float
DOUBLE_PRECISION = sys.float_info.mant_dig

_round_nearest = BACKEND_ROUNDING[ROUND_HALF_EVEN]


# The promotion lattice.  max() of two classes is the level at which they combine.
class NumberClass(IntEnum):
    NOT_A_NUMBER = 0
    INTEGER_LIKE = 1
    RATIONAL_LIKE = 2
    FLOAT_LIKE = 3
    COMPLEX_LIKE = 4


#
# Boxing.  Every result passes through one of these functions, which enforce the
# invariants of the kind.
#

def box_integer(value):
    '''Box an int.'''
    result = object.__new__(Integer)
    result._storage = acquire(Kind.INTEGER, value)
    return result


def box_rational(numerator, denominator):
    '''Box a rational in lowest terms with a positive denominator.  denominator must be
    non-zero.'''
    if denominator < 0:
        numerator, denominator = -numerator, -denominator
    divisor = gcd(numerator, denominator)
    if divisor != 1:
        numerator //= divisor
        denominator //= divisor
    result = object.__new__(Rational)
    result._storage = acquire(Kind.RATIONAL, numerator, denominator)
    return result


def box_float(raw, precision, rc, context, op_tuple):
    '''Box a raw value already rounded to precision bits.  Check the result against the
    context's exponent range and raise flags.  rc is the backend's ResultCode.'''
    if not backend.mpf_is_zero(raw):
        exponent = backend.mpf_exponent(raw)
        if exponent > context.emax:
            Overflow(op_tuple, f'result exponent {exponent:,d} exceeds emax '
                     f'{context.emax:,d}').signal(context)
        if exponent < context.emin:
            # The result is flushed to zero, which lies on the other side of 0 from it
            rc = ResultCode.ROUNDED_DOWN if backend.mpf_sign(raw) > 0 \
                else ResultCode.ROUNDED_UP
            raw = fzero
            Underflow(op_tuple, 'result underflows to zero').signal(context)
    if rc != ResultCode.EXACT:
        Inexact(op_tuple, 'result is inexact').signal(context)
    return Float._box(raw, precision, rc, context.rounding)


def box_complex(raws, precisions, rcs, context, op_tuple):
    '''Box a pair of raw components, each boxed as by box_float.'''
    real = box_float(raws[0], precisions[0], rcs[0], context, op_tuple)
    imag = box_float(raws[1], precisions[1], rcs[1], context, op_tuple)
    return Complex._box(real, imag)


#
# The boxed kinds
#

class Integer:
    '''An arbitrary-precision integer.

    Integer(x, base=0) converts a string of digits in base, where base 0 detects a Python
    prefix, or any integer-like value.  Real values are truncated towards zero.
    '''

    __slots__ = ('_storage', )

    def __new__(cls, value=0, base=0):
        if isinstance(value, str):
            return box_integer(parse_integer(value, base))
        if base != 0:
            raise TypeError('Integer() cannot take a base with a non-string value')
        if isinstance(value, Integer):
            return value
        number_class = classify(value)
        if number_class == NumberClass.INTEGER_LIKE:
            return box_integer(operator.index(value))
        if number_class in (NumberClass.RATIONAL_LIKE, NumberClass.FLOAT_LIKE):
            if isinstance(value, (float, Decimal)):
                # Raises ValueError for NaNs and OverflowError for infinities
                return box_integer(int(value))
            numerator, denominator = exact_ratio(value)
            return box_integer(_truncate(numerator, denominator))
        raise TypeError(f'cannot convert {type(value).__name__} to Integer')

    def __del__(self):
        storage = getattr(self, '_storage', None)
        if storage is not None:
            release(Kind.INTEGER, storage)

    @property
    def value(self):
        '''The value as an int.'''
        return self._storage.value

    @property
    def numerator(self):
        return self

    @property
    def denominator(self):
        return box_integer(1)

    @property
    def real(self):
        return self

    @property
    def imag(self):
        return box_integer(0)

    def conjugate(self):
        return self

    def bit_length(self):
        return self._storage.value.bit_length()

    def digits(self, base=10):
        '''Return the value as a string in base, 2 to 62.  Bases 2, 8 and 16 have a Python
        prefix.'''
        return int_to_digits(self._storage.value, base)

    def __index__(self):
        return self._storage.value

    def __int__(self):
        return self._storage.value

    def __float__(self):
        return float(self._storage.value)

    def __complex__(self):
        return complex(self._storage.value)

    def __bool__(self):
        return bool(self._storage.value)

    def __hash__(self):
        return hash(self._storage.value)

    def __trunc__(self):
        return self

    def __floor__(self):
        return self

    def __ceil__(self):
        return self

    def __round__(self, ndigits=None):
        if ndigits is None:
            return self
        return box_integer(round(self._storage.value, ndigits))

    def __str__(self):
        return str(self._storage.value)

    def __repr__(self):
        return f'Integer({self._storage.value})'

    def __format__(self, spec):
        return format(self._storage.value, spec)

    def __reduce__(self):
        return (Integer, (self._storage.value, ))

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


class Rational:
    '''An exact rational number, always in lowest terms with a positive denominator.

    Rational(x) converts a string, or exactly converts any real value.  Rational(x, y) is
    x / y computed exactly.  Strings are 'n/d' or 'n' in base, or in base 10 a decimal
    such as '0.1', which is read at the context precision and converted to the simplest
    rational that rounds to the same value.
    '''

    __slots__ = ('_storage', )

    def __new__(cls, value=0, denominator=None, base=10):
        if isinstance(value, str):
            if denominator is not None:
                raise TypeError('Rational() cannot take a denominator with a string')
            return _rational_from_string(value, base)
        if base != 10:
            raise TypeError('Rational() cannot take a base with a non-string value')
        numerator, lower = _rational_operand(value)
        if denominator is None:
            return box_rational(numerator, lower)
        upper, divisor = _rational_operand(denominator)
        if upper == 0:
            DivisionByZero((OP_CONVERT, value, denominator),
                           'Rational() with a zero denominator').signal()
        return box_rational(numerator * divisor, lower * upper)

    def __del__(self):
        storage = getattr(self, '_storage', None)
        if storage is not None:
            release(Kind.RATIONAL, storage)

    @property
    def pair(self):
        '''The pair (numerator, denominator) of ints.'''
        return self._storage.value

    @property
    def numerator(self):
        return box_integer(self._storage.value[0])

    @property
    def denominator(self):
        return box_integer(self._storage.value[1])

    @property
    def real(self):
        return self

    @property
    def imag(self):
        return box_integer(0)

    def conjugate(self):
        return self

    def as_integer_ratio(self):
        return self._storage.value

    def digits(self, base=10):
        '''Return the value as 'n/d' with both parts in base.'''
        numerator, denominator = self._storage.value
        return f'{int_to_digits(numerator, base)}/{int_to_digits(denominator, base)}'

    def __int__(self):
        return _truncate(*self._storage.value)

    def __float__(self):
        numerator, denominator = self._storage.value
        return numerator / denominator

    def __complex__(self):
        return complex(float(self))

    def __bool__(self):
        return bool(self._storage.value[0])

    def __hash__(self):
        return hash(Fraction(*self._storage.value))

    def __trunc__(self):
        return box_integer(_truncate(*self._storage.value))

    def __floor__(self):
        numerator, denominator = self._storage.value
        return box_integer(numerator // denominator)

    def __ceil__(self):
        numerator, denominator = self._storage.value
        return box_integer(-(-numerator // denominator))

    def __round__(self, ndigits=None):
        value = Fraction(*self._storage.value)
        if ndigits is None:
            return box_integer(round(value))
        value = round(value, ndigits)
        return box_rational(value.numerator, value.denominator)

    def __str__(self):
        numerator, denominator = self._storage.value
        if denominator == 1:
            return str(numerator)
        return f'{numerator}/{denominator}'

    def __repr__(self):
        return 'Rational({}, {})'.format(*self._storage.value)

    def __format__(self, spec):
        if not spec:
            return str(self)
        spec = FormatSpec.parse(spec)
        if spec.type in ('a', 'A'):
            raise ValueError('hexadecimal format of a Rational is not supported')
        numerator, denominator = self._storage.value
        context = get_context()
        return format_real(spec, numerator < 0, abs(numerator), denominator,
                           context.effective_precision(0), context.rounding)

    def __reduce__(self):
        return (Rational, self._storage.value)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


class Float:
    '''A binary floating point number with an explicit precision in bits.

    Float(x, precision=0, base=10) converts a string in base or any real value, rounding
    to precision bits with the context's rounding mode.  Precision 0 means the context's
    default precision.  Precision 1 means the exact precision of x if x is radix-2
    exact, otherwise the default precision plus GUARD_BITS.

    Floats are immutable.  precision is the precision in bits, rc the ResultCode of the
    operation that produced the value and rounding the rounding mode that was in force.
    There is no NaN or infinity: results too large raise OverflowError, and results too
    small become zero.
    '''

    __slots__ = ('_value', 'precision', 'rc', 'rounding', '_hash')

    def __new__(cls, value=0, precision=0, base=10):
        context = get_context()
        if isinstance(value, str):
            op_tuple = (OP_FROM_STRING, value)
            numerator, denominator = parse_real(value, base)
            precision = float_precision(value, precision, context)
            raw, rc = backend.float_from_rational(numerator, denominator, precision,
                                                  context.backend_rounding)
            return box_float(raw, precision, rc, context, op_tuple)
        if base != 10:
            raise TypeError('Float() cannot take a base with a non-string value')
        number_class = classify(value)
        if number_class == NumberClass.COMPLEX_LIKE:
            raise TypeError(f'cannot convert {type(value).__name__} to Float')
        if number_class == NumberClass.NOT_A_NUMBER:
            raise TypeError(f'cannot convert {type(value).__name__} to Float')
        precision = float_precision(value, precision, context)
        op_tuple = (OP_CONVERT, value)
        if isinstance(value, Float):
            if value.precision == precision:
                return value
            raw, rc = backend.round_exact(value._value, precision, context.backend_rounding)
        elif isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f'cannot convert {value!r} to Float')
            raw, rc = backend.round_exact(backend.mpf_from_float(value), precision,
                                          context.backend_rounding)
        else:
            numerator, denominator = exact_ratio(value)
            raw, rc = backend.float_from_rational(numerator, denominator, precision,
                                                  context.backend_rounding)
        return box_float(raw, precision, rc, context, op_tuple)

    @classmethod
    def _box(cls, raw, precision, rc, rounding):
        result = object.__new__(cls)
        result._value = raw
        result.precision = precision
        result.rc = rc
        result.rounding = rounding
        result._hash = None
        return result

    @property
    def real(self):
        return self

    @property
    def imag(self):
        return Float._box(fzero, self.precision, ResultCode.EXACT, self.rounding)

    def conjugate(self):
        return self

    def is_zero(self):
        return backend.mpf_is_zero(self._value)

    def is_negative(self):
        return backend.mpf_sign(self._value) < 0

    def is_integer(self):
        return backend.mpf_is_integral(self._value)

    def as_integer_ratio(self):
        '''Return the exact value as a pair (numerator, denominator) in lowest terms.'''
        return backend.mpf_as_integer_ratio(self._value)

    def as_rational_approximation(self, err=None):
        '''Return the simplest rational within err of the value.  See approximate().'''
        from .approx import approximate
        return approximate(self, err)

    def digits(self, base=10, count=0):
        '''Return a tuple (mantissa, exponent, precision).  mantissa is a string of count
        significant digits in base, preceded by '-' if negative, and the value is
        0.mantissa * base**exponent.  count 0 means as many digits as distinguish values of
        this precision.
        '''
        check_base(base)
        if count == 0:
            count = 1 + ceil(self.precision / log2(base))
        numerator, denominator = self.as_integer_ratio()
        if not numerator:
            return '0', 0, self.precision
        sign = numerator < 0
        exponent, digits = to_digits(abs(numerator), denominator, count,
                                     get_context().rounding, sign, base)
        mantissa = digits_to_str(digits, base)
        return ('-' if sign else '') + mantissa, exponent + 1, self.precision

    def __int__(self):
        return backend.mpf_to_int(self._value)

    def __float__(self):
        return backend.mpf_to_float(self._value, _round_nearest)

    def __complex__(self):
        return complex(float(self))

    def __bool__(self):
        return not backend.mpf_is_zero(self._value)

    def __hash__(self):
        '''Python hash.  Must hash equally to other types with the same value.'''
        if self._hash is None:
            self._hash = hash(Fraction(*self.as_integer_ratio()))
        return self._hash

    def __trunc__(self):
        return box_integer(backend.mpf_to_int(self._value))

    def __floor__(self):
        return box_integer(math.floor(Fraction(*self.as_integer_ratio())))

    def __ceil__(self):
        return box_integer(math.ceil(Fraction(*self.as_integer_ratio())))

    def __round__(self, ndigits=None):
        value = Fraction(*self.as_integer_ratio())
        if ndigits is None:
            return box_integer(round(value))
        return Float(round(value, ndigits), self.precision)

    def _format(self, spec, rounding):
        numerator, denominator = self.as_integer_ratio()
        return format_real(spec, numerator < 0, abs(numerator), denominator, self.precision,
                           rounding)

    def __str__(self):
        return self._format(DEFAULT_FORMAT_SPEC, ROUND_HALF_EVEN)

    def __repr__(self):
        text = str(self)
        if self.precision == get_context().effective_precision(0):
            return f"Float('{text}')"
        return f"Float('{text}', precision={self.precision})"

    def __format__(self, spec):
        return self._format(FormatSpec.parse(spec), get_context().rounding)

    def __reduce__(self):
        from .binary import from_binary, to_binary
        return (from_binary, (to_binary(self), ))

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


class Complex:
    '''A complex number whose real and imaginary parts are Floats with independent
    precisions.

    Complex(real=0, imag=None, precision=0) converts a string like '(1+2j)', any
    complex-like value, or a pair of real values.  precision is as for Float and may be a
    pair (real_precision, imag_precision).
    '''

    __slots__ = ('real', 'imag', '_hash')

    def __new__(cls, real=0, imag=None, precision=0):
        if isinstance(precision, tuple):
            if len(precision) != 2:
                raise ValueError('Complex() precision must be an integer or a pair')
            real_precision, imag_precision = precision
        else:
            real_precision = imag_precision = precision

        if isinstance(real, str):
            if imag is not None:
                raise TypeError('Complex() cannot take a second argument with a string')
            real, imag = split_complex(real)
        elif isinstance(real, Complex) and imag is None and precision == 0:
            return real
        elif classify(real) == NumberClass.COMPLEX_LIKE:
            if imag is not None:
                raise TypeError('Complex() cannot take a second argument if the first '
                                'is complex')
            real, imag = complex_parts(real)
        elif imag is None:
            imag = 0
        if classify(imag) == NumberClass.COMPLEX_LIKE:
            raise TypeError('Complex() imaginary part must be real')
        return cls._box(Float(real, real_precision), Float(imag, imag_precision))

    @classmethod
    def _box(cls, real, imag):
        result = object.__new__(cls)
        result.real = real
        result.imag = imag
        result._hash = None
        return result

    @property
    def precision(self):
        '''The pair of component precisions.'''
        return self.real.precision, self.imag.precision

    @property
    def rc(self):
        '''The pair of component ResultCodes.'''
        return self.real.rc, self.imag.rc

    @property
    def raw(self):
        return self.real._value, self.imag._value

    def conjugate(self):
        imag = self.imag
        return Complex._box(self.real, Float._box(backend.mpf_negate(imag._value),
                                                  imag.precision, imag.rc.negate(),
                                                  imag.rounding))

    def __complex__(self):
        return complex(float(self.real), float(self.imag))

    def __bool__(self):
        return bool(self.real) or bool(self.imag)

    def __hash__(self):
        '''Python hash, following the hash of the built-in complex type.'''
        if self._hash is None:
            width = sys.hash_info.width
            combined = hash(self.real) + sys.hash_info.imag * hash(self.imag)
            # Wrap as a C Py_hash_t would
            combined = (combined + (1 << (width - 1))) % (1 << width) - (1 << (width - 1))
            self._hash = -2 if combined == -1 else combined
        return self._hash

    def _format(self, spec, rounding):
        inner = attr.evolve(spec, width=0)
        real = self.real._format(inner, rounding)
        imag = self.imag._format(attr.evolve(inner, sign='+'), rounding)
        text = f'{real}{imag}j'
        if not spec.type:
            text = f'({text})'
        return spec.pad(text)

    def __str__(self):
        return self._format(DEFAULT_FORMAT_SPEC, ROUND_HALF_EVEN)

    def __repr__(self):
        text = self._format(DEFAULT_FORMAT_SPEC, ROUND_HALF_EVEN)[1:-1]
        default = get_context().effective_precision(0)
        if self.precision == (default, default):
            return f"Complex('{text}')"
        return f"Complex('{text}', precision={self.precision})"

    def __format__(self, spec):
        return self._format(FormatSpec.parse(spec), get_context().rounding)

    def __reduce__(self):
        from .binary import from_binary, to_binary
        return (from_binary, (to_binary(self), ))

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


DEFAULT_FORMAT_SPEC = FormatSpec()

numbers.Integral.register(Integer)
numbers.Rational.register(Rational)
numbers.Real.register(Float)
numbers.Complex.register(Complex)


#
# Numeric classifier
#

_NATIVE_CLASSES = {
    Integer: NumberClass.INTEGER_LIKE,
    Rational: NumberClass.RATIONAL_LIKE,
    Float: NumberClass.FLOAT_LIKE,
    Complex: NumberClass.COMPLEX_LIKE,
    int: NumberClass.INTEGER_LIKE,
    bool: NumberClass.INTEGER_LIKE,
    Fraction: NumberClass.RATIONAL_LIKE,
    float: NumberClass.FLOAT_LIKE,
    Decimal: NumberClass.FLOAT_LIKE,
    complex: NumberClass.COMPLEX_LIKE,
}

_ABSTRACT_CLASSES = (
    (numbers.Integral, NumberClass.INTEGER_LIKE),
    (numbers.Rational, NumberClass.RATIONAL_LIKE),
    (numbers.Real, NumberClass.FLOAT_LIKE),
    (numbers.Complex, NumberClass.COMPLEX_LIKE),
)


def classify(value):
    '''Return the NumberClass of any value from its type's capabilities.  Constructs
    nothing.'''
    number_class = _NATIVE_CLASSES.get(type(value))
    if number_class is not None:
        return number_class
    if isinstance(value, (str, bytes, bytearray)):
        return NumberClass.NOT_A_NUMBER
    for abc, number_class in _ABSTRACT_CLASSES:
        if isinstance(value, abc):
            return number_class
    cls = type(value)
    if hasattr(cls, '__index__'):
        return NumberClass.INTEGER_LIKE
    if hasattr(value, 'numerator') and hasattr(value, 'denominator'):
        return NumberClass.RATIONAL_LIKE
    if hasattr(cls, '__float__'):
        return NumberClass.FLOAT_LIKE
    if hasattr(cls, '__complex__'):
        return NumberClass.COMPLEX_LIKE
    return NumberClass.NOT_A_NUMBER


#
# Exact values of classified operands
#

def _truncate(numerator, denominator):
    quotient = abs(numerator) // denominator
    return -quotient if numerator < 0 else quotient


def integer_value(value):
    '''The int value of an integer-like.'''
    if isinstance(value, Integer):
        return value._storage.value
    return operator.index(value)


def rational_pair(value):
    '''The pair (numerator, denominator), in lowest terms with a positive denominator, of a
    rational-like.'''
    if isinstance(value, Rational):
        return value._storage.value
    if isinstance(value, Integer):
        return value._storage.value, 1
    if isinstance(value, Fraction):
        return value.numerator, value.denominator
    if classify(value) == NumberClass.INTEGER_LIKE:
        return operator.index(value), 1
    numerator, denominator = int(value.numerator), int(value.denominator)
    if denominator < 0:
        numerator, denominator = -numerator, -denominator
    divisor = gcd(numerator, denominator)
    return numerator // divisor, denominator // divisor


def exact_ratio(value):
    '''The exact value of a finite real as a pair (numerator, denominator) with a positive
    denominator.  Raises ValueError for NaNs and infinities.'''
    if isinstance(value, Float):
        return backend.mpf_as_integer_ratio(value._value)
    if isinstance(value, (float, Decimal)):
        if not math.isfinite(value):
            raise ValueError(f'cannot convert {value!r}: NaN and infinity are not '
                             'representable')
        return value.as_integer_ratio()
    number_class = classify(value)
    if number_class in (NumberClass.INTEGER_LIKE, NumberClass.RATIONAL_LIKE):
        return rational_pair(value)
    if number_class == NumberClass.FLOAT_LIKE:
        if hasattr(type(value), 'as_integer_ratio'):
            return value.as_integer_ratio()
        return exact_ratio(float(value))
    raise TypeError(f'{type(value).__name__} is not a real number')


def complex_parts(value):
    '''Return the real and imaginary parts of any number.'''
    if isinstance(value, Complex):
        return value.real, value.imag
    number_class = classify(value)
    if number_class == NumberClass.COMPLEX_LIKE:
        if not isinstance(value, complex):
            value = complex(value)
        return value.real, value.imag
    if number_class == NumberClass.NOT_A_NUMBER:
        raise TypeError(f'{type(value).__name__} is not a number')
    return value, 0


def _rational_operand(value):
    number_class = classify(value)
    if number_class in (NumberClass.NOT_A_NUMBER, NumberClass.COMPLEX_LIKE):
        raise TypeError(f'cannot convert {type(value).__name__} to Rational')
    return exact_ratio(value)


def _rational_from_string(text, base):
    check_base(base)
    string = text.strip()
    if '/' in string:
        numerator, denominator = string.split('/', 1)
        numerator = parse_integer(numerator, base)
        denominator = parse_integer(denominator, base)
        if denominator == 0:
            DivisionByZero((OP_FROM_STRING, text), 'Rational() with a zero '
                           'denominator').signal()
        return box_rational(numerator, denominator)
    if base == 10 and any(char in string for char in '.eE@'):
        from .approx import approximate
        return to_rational(approximate(Float(string)))
    return box_rational(parse_integer(string, base), 1)


#
# Coercion engine
#

def float_precision(value, precision, context):
    '''Return the precision of a Float built from value when precision is requested.'''
    if precision == 1:
        return context.effective_precision(max(MIN_PRECISION, exact_precision(value,
                                                                              context)))
    return context.effective_precision(precision)


def exact_precision(value, context):
    '''The precision that holds a radix-2 exact value without loss, or for other values the
    default precision plus guard bits.'''
    if isinstance(value, Float):
        return value.precision
    if isinstance(value, float):
        return DOUBLE_PRECISION
    number_class = classify(value)
    if number_class == NumberClass.INTEGER_LIKE:
        return abs(integer_value(value)).bit_length()
    if number_class == NumberClass.RATIONAL_LIKE:
        numerator, denominator = rational_pair(value)
        if denominator & (denominator - 1) == 0:
            return abs(numerator).bit_length()
    return context.precision + GUARD_BITS


def to_integer(value):
    '''Return an integer-like value as an Integer.'''
    if isinstance(value, Integer):
        return value
    if classify(value) != NumberClass.INTEGER_LIKE:
        raise TypeError(f'cannot convert {type(value).__name__} to Integer')
    return box_integer(operator.index(value))


def to_rational(value):
    '''Return a real value as a Rational, exactly.  NaNs and infinities raise ValueError.'''
    if isinstance(value, Rational):
        return value
    return box_rational(*_rational_operand(value))


def to_float(value, precision=0):
    '''Return a real value as a Float.  precision is as for the Float constructor.'''
    if classify(value) in (NumberClass.NOT_A_NUMBER, NumberClass.COMPLEX_LIKE):
        raise TypeError(f'cannot convert {type(value).__name__} to Float')
    return Float(value, precision)


def to_complex(value, precision=0):
    '''Return a number as a Complex.  precision is an integer or a pair as for the Complex
    constructor.'''
    if classify(value) == NumberClass.NOT_A_NUMBER:
        raise TypeError(f'cannot convert {type(value).__name__} to Complex')
    return Complex(value, None, precision)
