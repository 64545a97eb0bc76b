#
# A portable binary encoding of the boxed kinds
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import logging

from mpmath.libmp import fzero

from . import backend
from .backend import ResultCode
from .cache import Kind, LIMB_BITS
from .context import ROUNDING_MODES, MIN_PRECISION, MAX_PRECISION
from .tower import (
    Integer, Rational, Float, Complex, NumberClass, classify, box_integer, box_rational,
    to_integer, to_rational, to_float, to_complex,
)


__all__ = ('to_binary', 'from_binary')

logger = logging.getLogger(__name__)


# Sign byte of Integer and Rational records
SIGN_ZERO = 0x00
SIGN_POSITIVE = 0x01
SIGN_NEGATIVE = 0x02
# Rational records with 8-byte length fields
LARGE_RATIONAL = 0x04

# Status byte of Float records
FLOAT_REGULAR = 0x01
FLOAT_NEGATIVE = 0x02
FLOAT_LARGE = 0x04
FLOAT_NAN = 0x08
FLOAT_INF = 0x10
FLOAT_EXP_NEGATIVE = 0x20
FLOAT_LIMB_64 = 0x40

LIMB_WIDTHS = (32, 64)


def _check_limb_bits(limb_bits):
    if limb_bits not in LIMB_WIDTHS:
        raise ValueError(f'limb_bits must be 32 or 64, not {limb_bits!r}')


def _byte_count(value):
    return (value.bit_length() + 7) // 8


def _needs_large(*values):
    return any(value >> 32 for value in values)


#
# Encoding
#

def to_binary(value, limb_bits=LIMB_BITS):
    '''Encode a number as bytes.  Native numbers are first converted to the boxed kind of
    their class, exactly.  limb_bits is the limb width of the Float mantissa layout.'''
    _check_limb_bits(limb_bits)
    if not isinstance(value, (Integer, Rational, Float, Complex)):
        value = {
            NumberClass.INTEGER_LIKE: to_integer,
            NumberClass.RATIONAL_LIKE: to_rational,
            NumberClass.FLOAT_LIKE: lambda value: to_float(value, 1),
            NumberClass.COMPLEX_LIKE: lambda value: to_complex(value, 1),
        }.get(classify(value), _not_a_number)(value)

    if isinstance(value, Integer):
        return _encode_integer(value.value)
    if isinstance(value, Rational):
        return _encode_rational(*value.pair)
    if isinstance(value, Float):
        return _encode_float(value, Kind.FLOAT, limb_bits)
    return (_encode_float(value.real, Kind.COMPLEX, limb_bits)
            + _encode_float(value.imag, Kind.COMPLEX, limb_bits))


def _not_a_number(value):
    raise TypeError(f'to_binary() argument must be a number, not {type(value).__name__}')


def _sign_byte(value):
    if value == 0:
        return SIGN_ZERO
    return SIGN_NEGATIVE if value < 0 else SIGN_POSITIVE


def _encode_integer(value):
    magnitude = abs(value)
    return (bytes((Kind.INTEGER, _sign_byte(value)))
            + magnitude.to_bytes(_byte_count(magnitude), 'little'))


def _encode_rational(numerator, denominator):
    if numerator == 0:
        return bytes((Kind.RATIONAL, SIGN_ZERO))
    magnitude = abs(numerator)
    num_length = _byte_count(magnitude)
    if _needs_large(num_length):
        status, size_size = _sign_byte(numerator) | LARGE_RATIONAL, 8
    else:
        status, size_size = _sign_byte(numerator), 4
    return b''.join((
        bytes((Kind.RATIONAL, status)),
        num_length.to_bytes(size_size, 'little'),
        magnitude.to_bytes(num_length, 'little'),
        denominator.to_bytes(_byte_count(denominator), 'little'),
    ))


def _encode_float(value, kind, limb_bits):
    raw = value._value
    precision = value.precision
    status = 0
    if backend.mpf_sign(raw) < 0:
        status |= FLOAT_NEGATIVE
    header = [kind, status, value.rc, ROUNDING_MODES.index(value.rounding)]

    if backend.mpf_is_zero(raw):
        size_size = 8 if _needs_large(precision) else 4
        if size_size == 8:
            header[1] |= FLOAT_LARGE
        return bytes(header) + precision.to_bytes(size_size, 'little')

    _sign, man, exp, bc = raw
    # The mantissa is normalized so its top bit is the top bit of the top limb, and the
    # value is 0.mantissa * 2**exponent
    exponent = exp + bc
    limb_count = (precision + limb_bits - 1) // limb_bits
    mantissa = int(man) << (limb_count * limb_bits - bc)

    status |= FLOAT_REGULAR
    if exponent < 0:
        status |= FLOAT_EXP_NEGATIVE
    if limb_bits == 64:
        status |= FLOAT_LIMB_64
    size_size = 4
    if _needs_large(abs(exponent), precision, limb_count):
        status |= FLOAT_LARGE
        size_size = 8
    header[1] = status
    return b''.join((
        bytes(header),
        precision.to_bytes(size_size, 'little'),
        abs(exponent).to_bytes(size_size, 'little'),
        mantissa.to_bytes(limb_count * limb_bits // 8, 'little'),
    ))


#
# Decoding
#

def from_binary(data, limb_bits=LIMB_BITS):
    '''Decode bytes produced by to_binary().  limb_bits is the local limb width; Float
    mantissas written with the other width are converted.

    Raises ValueError if data is truncated, has trailing bytes, an unknown kind tag or
    holds a NaN or infinity.
    '''
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f'from_binary() argument must be bytes, not {type(data).__name__}')
    _check_limb_bits(limb_bits)
    data = bytes(data)
    if len(data) < 2:
        raise ValueError('byte sequence too short for from_binary()')
    tag = data[0]
    if tag == Kind.INTEGER:
        return _decode_integer(data)
    if tag == Kind.RATIONAL:
        return _decode_rational(data)
    if tag == Kind.FLOAT:
        value, end = _decode_float(data, 0, Kind.FLOAT, limb_bits)
        _check_end(data, end)
        return value
    if tag == Kind.COMPLEX:
        real, end = _decode_float(data, 0, Kind.COMPLEX, limb_bits)
        imag, end = _decode_float(data, end, Kind.COMPLEX, limb_bits)
        _check_end(data, end)
        return Complex._box(real, imag)
    raise ValueError(f'unknown kind tag {tag} in from_binary()')


def _check_end(data, end):
    if end != len(data):
        raise ValueError('trailing bytes after from_binary() record')


def _sign(status):
    sign = status & 0x03
    if sign not in (SIGN_POSITIVE, SIGN_NEGATIVE):
        raise ValueError(f'invalid sign byte {status:#04x} in from_binary()')
    return -1 if sign == SIGN_NEGATIVE else 1


def _decode_integer(data):
    if data[1] == SIGN_ZERO:
        _check_end(data, 2)
        return box_integer(0)
    sign = _sign(data[1])
    if len(data) < 3:
        raise ValueError('byte sequence too short for from_binary()')
    return box_integer(sign * int.from_bytes(data[2:], 'little'))


def _decode_rational(data):
    status = data[1]
    if status == SIGN_ZERO:
        _check_end(data, 2)
        return box_rational(0, 1)
    if status & ~(0x03 | LARGE_RATIONAL):
        raise ValueError(f'invalid status byte {status:#04x} in from_binary()')
    sign = _sign(status)
    size_size = 8 if status & LARGE_RATIONAL else 4
    start = 2 + size_size
    if len(data) < start:
        raise ValueError('byte sequence too short for from_binary()')
    num_length = int.from_bytes(data[2:start], 'little')
    if len(data) < start + num_length + 1:
        raise ValueError('byte sequence too short for from_binary()')
    numerator = int.from_bytes(data[start:start + num_length], 'little')
    denominator = int.from_bytes(data[start + num_length:], 'little')
    if denominator == 0:
        raise ValueError('zero denominator in from_binary()')
    return box_rational(sign * numerator, denominator)


def _read_size(data, offset, size_size):
    end = offset + size_size
    if len(data) < end:
        raise ValueError('byte sequence too short for from_binary()')
    return int.from_bytes(data[offset:end], 'little'), end


def _decode_float(data, offset, kind, limb_bits):
    '''Decode the Float record at offset.  Return the pair (value, end offset).'''
    if len(data) < offset + 4:
        raise ValueError('byte sequence too short for from_binary()')
    tag, status, rc, rounding = data[offset:offset + 4]
    if tag != kind:
        raise ValueError(f'unexpected kind tag {tag} in from_binary()')
    try:
        rc = ResultCode(rc)
        rounding = ROUNDING_MODES[rounding]
    except (ValueError, IndexError):
        raise ValueError('invalid result code or rounding mode in from_binary()') from None

    size_size = 8 if status & FLOAT_LARGE else 4
    precision, offset = _read_size(data, offset + 4, size_size)
    if not MIN_PRECISION <= precision <= MAX_PRECISION:
        raise ValueError(f'invalid precision {precision:,d} in from_binary()')

    if not status & FLOAT_REGULAR:
        if status & (FLOAT_NAN | FLOAT_INF):
            raise ValueError('NaN and infinity cannot be decoded by from_binary()')
        return Float._box(fzero, precision, rc, rounding), offset

    exponent, offset = _read_size(data, offset, size_size)
    if status & FLOAT_EXP_NEGATIVE:
        exponent = -exponent

    source_bits = 64 if status & FLOAT_LIMB_64 else 32
    source_length = (precision + source_bits - 1) // source_bits * source_bits // 8
    end = offset + source_length
    if len(data) < end:
        raise ValueError('byte sequence too short for from_binary()')
    mantissa_bytes = data[offset:end]

    length = (precision + limb_bits - 1) // limb_bits * limb_bits // 8
    if source_length > length:
        # Drop the low bytes, which hold no significant bits
        dropped = source_length - length
        if any(mantissa_bytes[:dropped]):
            raise ValueError('byte sequence invalid for from_binary()')
        mantissa_bytes = mantissa_bytes[dropped:]
        logger.debug('dropped %d low mantissa bytes decoding %d-bit limbs as %d-bit',
                     dropped, source_bits, limb_bits)
    elif source_length < length:
        mantissa_bytes = bytes(length - source_length) + mantissa_bytes
        logger.debug('padded %d low mantissa bytes decoding %d-bit limbs as %d-bit',
                     length - source_length, source_bits, limb_bits)

    mantissa = int.from_bytes(mantissa_bytes, 'little')
    if mantissa.bit_length() != length * 8:
        raise ValueError('unnormalized mantissa in from_binary()')
    raw = backend.mpf_from_man_exp(mantissa, exponent - length * 8)
    if raw[3] > precision:
        raise ValueError('mantissa exceeds precision in from_binary()')
    if status & FLOAT_NEGATIVE:
        raw = backend.mpf_negate(raw)
    return Float._box(raw, precision, rc, rounding), end
