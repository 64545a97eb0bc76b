#
# Operator dispatch: classify the operands, coerce them to their common level, call the
# backend and box the result.  Installs the operator methods of the boxed kinds.
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import math
import operator
from decimal import Decimal

import attr
from mpmath.libmp import fzero, fone

from . import backend
from .backend import WORD_MAX, WORD_OPERATIONS, ResultCode
from .context import get_context, DivisionByZero, InvalidOperation
from .tower import (
    Integer, Rational, Float, Complex, NumberClass, classify, box_integer, box_rational,
    box_float, box_complex, integer_value, rational_pair, exact_ratio, complex_parts,
    to_float, to_complex, OP_ABS,
)


__all__ = ('BinaryOperator', 'binary_op', 'power', 'compare', 'equal', 'sqrt',
           'ADD', 'SUB', 'MUL', 'TRUEDIV', 'FLOORDIV', 'MOD', 'DIVMOD',
           'LSHIFT', 'RSHIFT', 'AND', 'OR', 'XOR')


OP_POW = 'pow'
OP_SQRT = 'sqrt'


@attr.s(slots=True, frozen=True, kw_only=True)
class BinaryOperator:
    '''A binary operator of the tower.

    Each handler computes the operator on operands coerced to one level of the promotion
    lattice and returns a boxed result.  A level without a handler does not support the
    operator, so operands meeting there give NotImplemented.
    '''
    name = attr.ib()
    # integer(a, b, context, op_tuple) on ints
    integer = attr.ib(default=None)
    # rational(a, b, context, op_tuple) on (numerator, denominator) pairs
    rational = attr.ib(default=None)
    # real(a, b, precision, context, op_tuple) on raw floats
    real = attr.ib(default=None)
    # complex(a, b, precisions, context, op_tuple) on pairs of raw floats
    complex = attr.ib(default=None)
    # Division-family operators reject a zero divisor before reaching the backend
    is_division = attr.ib(default=False)
    # The machine-word backend entry point, if the operator has one
    word = attr.ib(default=None)

    def handler(self, level):
        return (None, self.integer, self.rational, self.real, self.complex)[level]

    @property
    def dunder(self):
        return f'__{self.name}__'

    @property
    def reflected_dunder(self):
        return f'__r{self.name}__'


#
# Operand coercion
#

def is_zero(value):
    if isinstance(value, (Integer, Rational, Float, Complex, int, float, complex, Decimal)):
        return not value
    return value == 0


def real_precision(lhs, rhs, context):
    '''The precision of a real result.  Two Float operands give the smaller of their
    precisions, one Float operand gives its precision, otherwise the context default.'''
    precisions = [value.precision for value in (lhs, rhs) if isinstance(value, Float)]
    if precisions:
        return min(precisions)
    return context.effective_precision(0)


def component_precisions(value):
    if isinstance(value, Complex):
        return value.precision
    if isinstance(value, Float):
        return value.precision, value.precision
    return None


def complex_precisions(lhs, rhs, context):
    '''The component precisions of a complex result, by the rule of real_precision applied
    to each component.'''
    pairs = [pair for pair in map(component_precisions, (lhs, rhs)) if pair is not None]
    if pairs:
        return min(pair[0] for pair in pairs), min(pair[1] for pair in pairs)
    precision = context.effective_precision(0)
    return precision, precision


def real_operand(value, precision):
    '''The raw float of a real operand, coerced at precision unless it is a Float.'''
    if isinstance(value, Float):
        return value._value
    return to_float(value, precision)._value


def complex_operand(value, precisions):
    '''The raw pair of a number, coerced at precisions unless it is a Complex or Float.'''
    if isinstance(value, Complex):
        return value.raw
    if isinstance(value, Float):
        return value._value, fzero
    return to_complex(value, precisions).raw


#
# The generic binary operation
#

def binary_op(op, lhs, rhs):
    '''Apply op to lhs and rhs.  Either operand may be any number; they are combined at
    the higher of their levels of the promotion lattice.  Returns NotImplemented if an
    operand is not a number or op is undefined at that level.'''
    lhs_class = classify(lhs)
    rhs_class = classify(rhs)
    if not (lhs_class and rhs_class):
        return NotImplemented
    level = max(lhs_class, rhs_class)
    handler = op.handler(level)
    if handler is None:
        return NotImplemented

    context = get_context()
    op_tuple = (op.name, lhs, rhs)
    if op.is_division and is_zero(rhs):
        DivisionByZero(op_tuple, f'{op.name} by zero').signal(context)

    if level == NumberClass.INTEGER_LIKE:
        return handler(integer_value(lhs), integer_value(rhs), context, op_tuple)
    if level == NumberClass.RATIONAL_LIKE:
        return handler(rational_pair(lhs), rational_pair(rhs), context, op_tuple)
    if level == NumberClass.FLOAT_LIKE:
        precision = real_precision(lhs, rhs, context)
        return handler(real_operand(lhs, precision), real_operand(rhs, precision),
                       precision, context, op_tuple)
    precisions = complex_precisions(lhs, rhs, context)
    return handler(complex_operand(lhs, precisions), complex_operand(rhs, precisions),
                   precisions, context, op_tuple)


#
# Handlers
#

def _integer(function):
    def handler(a, b, context, op_tuple):
        return box_integer(function(a, b))
    return handler


def _integer_truediv(a, b, context, op_tuple):
    # Integer true division delivers a Float at the context precision
    if b < 0:
        a, b = -a, -b
    precision = context.effective_precision(0)
    raw, rc = backend.float_from_rational(a, b, precision, context.backend_rounding)
    return box_float(raw, precision, rc, context, op_tuple)


def _integer_divmod(a, b, context, op_tuple):
    quotient, remainder = backend.int_divmod(a, b)
    return box_integer(quotient), box_integer(remainder)


def _shift(function):
    def handler(a, count, context, op_tuple):
        if count < 0:
            raise ValueError('negative shift count')
        if count > WORD_MAX:
            raise OverflowError('shift count too large')
        return box_integer(function(a, count))
    return handler


def _rational(function):
    def handler(a, b, context, op_tuple):
        return box_rational(*function(a, b))
    return handler


def _rational_floordiv(a, b, context, op_tuple):
    return box_integer(backend.rational_floordiv(a, b))


def _rational_divmod(a, b, context, op_tuple):
    return (box_integer(backend.rational_floordiv(a, b)),
            box_rational(*backend.rational_mod(a, b)))


def _real(function):
    def handler(a, b, precision, context, op_tuple):
        raw, rc = function(a, b, precision, context.backend_rounding)
        return box_float(raw, precision, rc, context, op_tuple)
    return handler


def _real_divmod(a, b, precision, context, op_tuple):
    rounding = context.backend_rounding
    quotient, quotient_rc = backend.float_floordiv(a, b, precision, rounding)
    remainder, remainder_rc = backend.float_mod(a, b, precision, rounding)
    return (box_float(quotient, precision, quotient_rc, context, op_tuple),
            box_float(remainder, precision, remainder_rc, context, op_tuple))


def _complex(function):
    def handler(a, b, precisions, context, op_tuple):
        raws, rcs = function(a, b, precisions, context.backend_rounding)
        return box_complex(raws, precisions, rcs, context, op_tuple)
    return handler


ADD = BinaryOperator(name='add', integer=_integer(operator.add),
                     rational=_rational(backend.rational_add),
                     real=_real(backend.float_add), complex=_complex(backend.complex_add),
                     word=WORD_OPERATIONS['add'])
SUB = BinaryOperator(name='sub', integer=_integer(operator.sub),
                     rational=_rational(backend.rational_sub),
                     real=_real(backend.float_sub), complex=_complex(backend.complex_sub),
                     word=WORD_OPERATIONS['sub'])
MUL = BinaryOperator(name='mul', integer=_integer(operator.mul),
                     rational=_rational(backend.rational_mul),
                     real=_real(backend.float_mul), complex=_complex(backend.complex_mul),
                     word=WORD_OPERATIONS['mul'])
TRUEDIV = BinaryOperator(name='truediv', integer=_integer_truediv,
                         rational=_rational(backend.rational_div),
                         real=_real(backend.float_div),
                         complex=_complex(backend.complex_div), is_division=True)
FLOORDIV = BinaryOperator(name='floordiv', integer=_integer(backend.int_floordiv),
                          rational=_rational_floordiv, real=_real(backend.float_floordiv),
                          is_division=True)
MOD = BinaryOperator(name='mod', integer=_integer(backend.int_mod),
                     rational=_rational(backend.rational_mod), real=_real(backend.float_mod),
                     is_division=True)
DIVMOD = BinaryOperator(name='divmod', integer=_integer_divmod, rational=_rational_divmod,
                        real=_real_divmod, is_division=True)
LSHIFT = BinaryOperator(name='lshift', integer=_shift(operator.lshift))
RSHIFT = BinaryOperator(name='rshift', integer=_shift(operator.rshift))
AND = BinaryOperator(name='and', integer=_integer(operator.and_))
OR = BinaryOperator(name='or', integer=_integer(operator.or_))
XOR = BinaryOperator(name='xor', integer=_integer(operator.xor))

ARITHMETIC_OPERATORS = (ADD, SUB, MUL, TRUEDIV, FLOORDIV, MOD, DIVMOD)
BITWISE_OPERATORS = (LSHIFT, RSHIFT, AND, OR, XOR)


#
# Power
#

def power(base, exponent, modulus=None):
    '''Return base ** exponent, or base ** exponent % modulus for integer-likes.

    An integer exponent keeps an exact base exact: a negative one gives a Rational.  Other
    real combinations give a Float and complex ones a Complex.
    '''
    base_class = classify(base)
    exponent_class = classify(exponent)
    if not (base_class and exponent_class):
        return NotImplemented
    context = get_context()
    op_tuple = (OP_POW, base, exponent)

    if modulus is not None:
        modulus_class = classify(modulus)
        if not modulus_class:
            return NotImplemented
        if max(base_class, exponent_class, modulus_class) != NumberClass.INTEGER_LIKE:
            raise TypeError('pow() 3rd argument not allowed unless all arguments are '
                            'integers')
        modulus = integer_value(modulus)
        if modulus == 0:
            raise ValueError('pow() 3rd argument cannot be 0')
        return box_integer(backend.int_pow(integer_value(base), integer_value(exponent),
                                           modulus))

    level = max(base_class, exponent_class)
    if exponent_class <= NumberClass.RATIONAL_LIKE:
        numerator, denominator = rational_pair(exponent)
        if abs(numerator) > WORD_MAX or denominator > WORD_MAX:
            raise OverflowError('exponent too large')

    if exponent_class == NumberClass.INTEGER_LIKE and level <= NumberClass.RATIONAL_LIKE:
        n = integer_value(exponent)
        if base_class == NumberClass.INTEGER_LIKE and n >= 0:
            return box_integer(backend.int_pow(integer_value(base), n))
        pair = rational_pair(base)
        if n < 0 and not pair[0]:
            DivisionByZero(op_tuple, 'zero raised to a negative power').signal(context)
        return box_rational(*backend.rational_pow(pair, n))

    if level <= NumberClass.FLOAT_LIKE:
        precision = real_precision(base, exponent, context)
        lhs = real_operand(base, precision)
        rhs = real_operand(exponent, precision)
        return _real_power(lhs, rhs, precision, context, op_tuple)

    precisions = complex_precisions(base, exponent, context)
    lhs = complex_operand(base, precisions)
    rhs = complex_operand(exponent, precisions)
    if backend.complex_is_zero(lhs):
        if not backend.mpf_is_zero(rhs[1]) or backend.mpf_sign(rhs[0]) < 0:
            DivisionByZero(op_tuple, 'zero raised to a negative or complex '
                           'power').signal(context)
        if backend.mpf_is_zero(rhs[0]):
            raws = (fone, fzero)
        else:
            raws = (fzero, fzero)
        return box_complex(raws, precisions, (ResultCode.EXACT, ResultCode.EXACT), context,
                           op_tuple)
    raws, rcs = backend.complex_pow(lhs, rhs, precisions, context.backend_rounding)
    return box_complex(raws, precisions, rcs, context, op_tuple)


def _real_power(base, exponent, precision, context, op_tuple):
    exponent_sign = backend.mpf_sign(exponent)
    if backend.mpf_is_zero(base):
        if exponent_sign < 0:
            DivisionByZero(op_tuple, 'zero raised to a negative power').signal(context)
        raw = fone if exponent_sign == 0 else fzero
        return box_float(raw, precision, ResultCode.EXACT, context, op_tuple)
    if backend.mpf_sign(base) < 0 and not backend.mpf_is_integral(exponent):
        InvalidOperation(op_tuple, 'negative number raised to a non-integral '
                         'power').signal(context)
    raw, rc = backend.float_pow(base, exponent, precision, context.backend_rounding)
    return box_float(raw, precision, rc, context, op_tuple)


#
# Comparisons
#

_NAN = 'nan'


def _non_finite(value):
    '''Return None for a finite value, _NAN for a NaN, and the sign of an infinity.'''
    if isinstance(value, float):
        if math.isnan(value):
            return _NAN
        if math.isinf(value):
            return 1 if value > 0 else -1
    elif isinstance(value, Decimal):
        if value.is_nan():
            return _NAN
        if value.is_infinite():
            return -1 if value.is_signed() else 1
    return None


def _cmp(a, b):
    return (a > b) - (a < b)


def compare(lhs, rhs):
    '''Compare two real numbers exactly.  Return -1, 0 or 1, or None if they are unordered
    because one is a NaN.  Returns NotImplemented unless both operands are real.'''
    lhs_class = classify(lhs)
    rhs_class = classify(rhs)
    if not (lhs_class and rhs_class) or NumberClass.COMPLEX_LIKE in (lhs_class, rhs_class):
        return NotImplemented
    lhs_special = _non_finite(lhs)
    rhs_special = _non_finite(rhs)
    if lhs_special is not None or rhs_special is not None:
        if _NAN in (lhs_special, rhs_special):
            return None
        return _cmp(lhs_special or 0, rhs_special or 0)
    if lhs_class <= NumberClass.RATIONAL_LIKE and rhs_class <= NumberClass.RATIONAL_LIKE:
        a, b = rational_pair(lhs)
        c, d = rational_pair(rhs)
    else:
        a, b = exact_ratio(lhs)
        c, d = exact_ratio(rhs)
    return _cmp(a * d, c * b)


def equal(lhs, rhs):
    '''Return True if two numbers are equal in value.  Complex numbers compare by
    component.'''
    lhs_class = classify(lhs)
    rhs_class = classify(rhs)
    if not (lhs_class and rhs_class):
        return NotImplemented
    if NumberClass.COMPLEX_LIKE in (lhs_class, rhs_class):
        lhs_real, lhs_imag = complex_parts(lhs)
        rhs_real, rhs_imag = complex_parts(rhs)
        return compare(lhs_real, rhs_real) == 0 and compare(lhs_imag, rhs_imag) == 0
    return compare(lhs, rhs) == 0


#
# Unary operations
#

def negate(value):
    if isinstance(value, Integer):
        return box_integer(-value.value)
    if isinstance(value, Rational):
        numerator, denominator = value.pair
        return box_rational(-numerator, denominator)
    if isinstance(value, Float):
        return Float._box(backend.mpf_negate(value._value), value.precision,
                          value.rc.negate(), value.rounding)
    return Complex._box(negate(value.real), negate(value.imag))


def positive(value):
    return value


def absolute(value):
    if isinstance(value, Integer):
        return box_integer(abs(value.value))
    if isinstance(value, Rational):
        numerator, denominator = value.pair
        return box_rational(abs(numerator), denominator)
    if isinstance(value, Float):
        if value.is_negative():
            return negate(value)
        return value
    context = get_context()
    precision = max(value.precision)
    raw, rc = backend.complex_abs(value.raw, precision, context.backend_rounding)
    return box_float(raw, precision, rc, context, (OP_ABS, value))


def invert(value):
    return box_integer(~value.value)


def sqrt(value):
    '''Return the square root of a number.  A real gives a Float; the square root of a
    negative real is an invalid operation.  A complex-like gives the principal root as a
    Complex.'''
    number_class = classify(value)
    if not number_class:
        raise TypeError(f'must be a number, not {type(value).__name__}')
    context = get_context()
    op_tuple = (OP_SQRT, value)
    if number_class == NumberClass.COMPLEX_LIKE:
        precisions = complex_precisions(value, None, context)
        raws, rcs = backend.complex_sqrt(complex_operand(value, precisions), precisions,
                                         context.backend_rounding)
        return box_complex(raws, precisions, rcs, context, op_tuple)
    precision = real_precision(value, None, context)
    raw = real_operand(value, precision)
    if backend.mpf_sign(raw) < 0:
        InvalidOperation(op_tuple, 'square root of a negative number').signal(context)
    raw, rc = backend.float_sqrt(raw, precision, context.backend_rounding)
    return box_float(raw, precision, rc, context, op_tuple)


#
# Installation of the operator methods
#

def _forward(op):
    def method(self, other):
        return binary_op(op, self, other)
    method.__name__ = op.dunder
    return method


def _reflected(op):
    def method(self, other):
        return binary_op(op, other, self)
    method.__name__ = op.reflected_dunder
    return method


def _word_forward(op):
    word = op.word

    def method(self, other):
        if type(other) is int and -WORD_MAX <= other <= WORD_MAX:
            return box_integer(word(self._storage.value, other))
        return binary_op(op, self, other)
    method.__name__ = op.dunder
    return method


def _word_reflected(op):
    word = op.word

    def method(self, other):
        if type(other) is int and -WORD_MAX <= other <= WORD_MAX:
            return box_integer(word(other, self._storage.value))
        return binary_op(op, other, self)
    method.__name__ = op.reflected_dunder
    return method


def _pow(self, other, modulus=None):
    return power(self, other, modulus)


def _rpow(self, other, modulus=None):
    return power(other, self, modulus)


def _ordering(test):
    def method(self, other):
        result = compare(self, other)
        if result is NotImplemented:
            return NotImplemented
        return result is not None and test(result)
    return method


def _eq(self, other):
    return equal(self, other)


def _ne(self, other):
    result = equal(self, other)
    if result is NotImplemented:
        return NotImplemented
    return not result


def install_operators():
    '''Set the operator methods of the boxed kinds.'''
    for cls in (Integer, Rational, Float, Complex):
        for op in ARITHMETIC_OPERATORS:
            if cls is Complex and op.complex is None:
                continue
            setattr(cls, op.dunder, _forward(op))
            setattr(cls, op.reflected_dunder, _reflected(op))
        cls.__pow__ = _pow
        cls.__rpow__ = _rpow
        cls.__eq__ = _eq
        cls.__ne__ = _ne
        cls.__neg__ = negate
        cls.__pos__ = positive
        cls.__abs__ = absolute
        if cls is not Complex:
            cls.__lt__ = _ordering(lambda result: result < 0)
            cls.__le__ = _ordering(lambda result: result <= 0)
            cls.__gt__ = _ordering(lambda result: result > 0)
            cls.__ge__ = _ordering(lambda result: result >= 0)

    for op in (ADD, SUB, MUL):
        setattr(Integer, op.dunder, _word_forward(op))
        setattr(Integer, op.reflected_dunder, _word_reflected(op))
    for op in BITWISE_OPERATORS:
        setattr(Integer, op.dunder, _forward(op))
        setattr(Integer, op.reflected_dunder, _reflected(op))
    Integer.__invert__ = invert


install_operators()
