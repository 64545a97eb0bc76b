#
# Conversion between numbers and text: digits in bases 2 to 62, number parsing and the
# format() mini-language
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import re
from functools import lru_cache
from math import ceil, floor, log2, log10

import attr

from .context import ROUND_HALF_EVEN, ROUND_DOWN, ROUND_CEILING, ROUND_FLOOR, ROUND_UP


__all__ = ('TextFormat', 'FormatSpec', 'DisplayFormat', 'Dec_g_Format', 'check_base',
           'int_to_digits', 'parse_integer', 'parse_real', 'split_complex', 'to_digits',
           'digits_to_str', 'format_real', 'display_digits')


MIN_BASE = 2
MAX_BASE = 62
DIGITS_36 = '0123456789abcdefghijklmnopqrstuvwxyz'
DIGITS_62 = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz'
BASE_PREFIXES = {2: '0b', 8: '0o', 16: '0x'}
BASE_FORMATS = {2: 'b', 8: 'o', 16: 'x'}

# What is discarded when a value is cut short, relative to half a unit in the last place
LF_EXACTLY_ZERO = 0
LF_LESS_THAN_HALF = 1
LF_EXACTLY_HALF = 2
LF_MORE_THAN_HALF = 3


@attr.s(slots=True, kw_only=True, cmp=False)
class TextFormat:
    '''Renders digit strings and significands produced by the converters below as text.

    exp_digits is the minimum width of a shown exponent.  0 never shows an exponent, as
    printf's 'f' does.  A negative value shows one only when printf's 'g' rule asks for it,
    padded to the absolute value.

    force_exp_sign writes '+' before non-negative exponents, force_leading_sign writes '+'
    before non-negative values, and force_point keeps a '.0' that would otherwise be
    omitted, so that "5" reads "5.0" and "0x1p2" reads "0x1.0p2".  upper_case upper-cases
    the whole result.  rstrip_zeroes drops trailing zeroes of the significand.
    '''

    exp_digits = attr.ib(default=1)
    force_exp_sign = attr.ib(default=True)
    force_leading_sign = attr.ib(default=False)
    force_point = attr.ib(default=False)
    upper_case = attr.ib(default=False)
    rstrip_zeroes = attr.ib(default=False)

    def leading_sign(self, sign):
        if sign:
            return '-'
        return '+' if self.force_leading_sign else ''

    def exponent_str(self, exponent):
        if exponent < 0:
            sign = '-'
        else:
            sign = '+' if self.force_exp_sign else ''
        return sign + str(abs(exponent)).rjust(abs(self.exp_digits), '0')

    def _with_point(self, head, tail):
        if tail:
            return f'{head}.{tail}'
        return f'{head}.0' if self.force_point else head

    def _finish(self, text):
        return text.upper() if self.upper_case else text

    def format_decimal(self, sign, exponent, digits, precision=None):
        '''Format the significant decimal digits of a value.  The leading digit has weight
        10**exponent.  precision, which defaults to the number of digits, feeds the 'g'
        rule.
        '''
        precision = precision or len(digits)
        assert precision > 0
        if self.rstrip_zeroes:
            digits = digits.rstrip('0') or '0'

        show_exponent = self.exp_digits > 0 or (
            self.exp_digits < 0 and not precision > exponent >= -4)
        if show_exponent:
            body = self._with_point(digits[0], digits[1:])
            body = f'{body}e{self.exponent_str(exponent)}'
        else:
            # Digits before the point
            whole = exponent + 1
            if whole <= 0:
                body = '0.' + '0' * -whole + digits
            else:
                digits = digits.ljust(whole, '0')
                body = self._with_point(digits[:whole], digits[whole:])

        return self._finish(self.leading_sign(sign) + body)

    def format_fixed(self, sign, scaled, places):
        '''Format scaled / 10**places with exactly places fractional digits.'''
        digits = str(scaled).rjust(places + 1, '0')
        whole = len(digits) - places
        return self.leading_sign(sign) + self._with_point(digits[:whole], digits[whole:])

    def format_hex(self, sign, significand, exponent, precision):
        '''Format a value as a hexadecimal float.  significand is zero or holds precision
        bits with the top one set, and that top bit has weight 2**exponent.
        '''
        if significand:
            # Move the top bit to the units bit of the leading hex digit
            significand <<= (precision & 3) ^ 1
            width = (precision + 6) // 4
        else:
            exponent, width = 0, 1

        hex_digits = f'{significand:0{width}x}'
        if self.rstrip_zeroes:
            hex_digits = hex_digits.rstrip('0') or '0'
        body = self._with_point(hex_digits[0], hex_digits[1:])
        return self._finish(f'{self.leading_sign(sign)}0x{body}p{self.exponent_str(exponent)}')


# str() of Float values; the point is always shown
DisplayFormat = TextFormat(exp_digits=-2, force_point=True, rstrip_zeroes=True)
# Agrees with Python's 'g' format given the same precision
Dec_g_Format = TextFormat(exp_digits=-2, rstrip_zeroes=True)
Dec_e_Format = TextFormat(exp_digits=2)
Dec_f_Format = TextFormat(exp_digits=0)
HexFormat = TextFormat()


#
# Rounding of digit strings
#

def lost_fraction(remainder, divisor):
    '''Classify the fraction remainder / divisor, which lies in [0, 1).'''
    if not remainder:
        return LF_EXACTLY_ZERO
    remainder *= 2
    if remainder < divisor:
        return LF_LESS_THAN_HALF
    if remainder == divisor:
        return LF_EXACTLY_HALF
    return LF_MORE_THAN_HALF


def shift_right(significand, bits):
    '''Shift significand right by bits, or left if bits is negative.  Return the pair
    (shifted, lost fraction).'''
    if bits <= 0:
        return significand << -bits, LF_EXACTLY_ZERO
    # Any shift beyond the length loses the same fraction
    bits = min(bits, significand.bit_length() + 2)
    half = 1 << (bits - 1)
    lost = significand & ((half << 1) - 1)
    return significand >> bits, lost_fraction(lost, half << 1)


def round_up(rounding, lost_fraction, sign, is_odd):
    '''Return True if a truncated magnitude must be incremented to honour rounding.

    sign is True for negative values.  is_odd, the parity of the truncated magnitude,
    breaks ties under ROUND_HALF_EVEN.
    '''
    if lost_fraction == LF_EXACTLY_ZERO:
        return False
    if rounding == ROUND_HALF_EVEN:
        return is_odd if lost_fraction == LF_EXACTLY_HALF else lost_fraction > LF_EXACTLY_HALF
    try:
        return {
            ROUND_DOWN: False,
            ROUND_UP: True,
            ROUND_CEILING: not sign,
            ROUND_FLOOR: sign,
        }[rounding]
    except KeyError:
        raise ValueError(f'invalid rounding mode: {rounding!r}') from None


#
# Digits
#

def check_base(base, allow_zero=False):
    if not isinstance(base, int) or isinstance(base, bool):
        raise TypeError('base must be an integer')
    if not (MIN_BASE <= base <= MAX_BASE or (allow_zero and base == 0)):
        lead = '0 or ' if allow_zero else ''
        raise ValueError(f'base must be {lead}in the interval [{MIN_BASE}, {MAX_BASE}]')
    return base


def digit_alphabet(base):
    '''Bases up to 36 use case-insensitive letters; larger bases are case-sensitive.'''
    return DIGITS_36 if base <= 36 else DIGITS_62


def digits_to_str(digits, base):
    alphabet = digit_alphabet(base)
    return ''.join(alphabet[digit] for digit in digits)


def int_to_digits(value, base=10, prefix=True):
    '''Return the integer value as a string of digits in base.  Bases 2, 8 and 16 are shown
    with a Python prefix if prefix is True.'''
    check_base(base)
    sign = '-' if value < 0 else ''
    value = abs(value)
    lead = BASE_PREFIXES.get(base, '') if prefix else ''
    if base == 10:
        return f'{sign}{value}'
    if base in BASE_PREFIXES:
        return f'{sign}{lead}{value:{BASE_FORMATS[base]}}'
    digits = []
    while True:
        value, digit = divmod(value, base)
        digits.append(digit)
        if not value:
            break
    return sign + digits_to_str(reversed(digits), base)


def parse_digits(string, base):
    '''Return the non-negative integer represented by a string of digits in base.'''
    if not string:
        raise ValueError(f'no digits for base {base}')
    if base <= 36:
        return int(string, base)
    alphabet = digit_alphabet(base)
    value = 0
    for char in string:
        digit = alphabet.find(char)
        if not 0 <= digit < base:
            raise ValueError(f'invalid digit {char!r} for base {base}')
        value = value * base + digit
    return value


def parse_integer(text, base=0):
    '''Parse text as an integer.  Base 0 detects a Python 0b, 0o or 0x prefix.'''
    if not isinstance(text, str):
        raise TypeError('parse_integer() requires a string')
    check_base(base, allow_zero=True)
    string = text.strip()
    if base <= 36:
        try:
            return int(string, base)
        except ValueError:
            raise ValueError(f'invalid digits for base {base}: {text!r}') from None
    negative = string[:1] == '-'
    if string[:1] in '+-':
        string = string[1:]
    value = parse_digits(string.replace('_', ''), base)
    return -value if negative else value


def to_digits(numerator, denominator, count, rounding, sign, base=10):
    '''Return a pair (exponent, digits) for the positive rational numerator / denominator
    rounded to count significant digits in base.  digits is a list of digit values and
    exponent is the power of base of the leading digit.

    This is the fixed-precision case of "How to Print Floating-Point Numbers Accurately"
    by Steele and White.
    '''
    R, S = numerator, denominator
    # An estimate of the exponent off by at most one
    exponent = floor((R.bit_length() - S.bit_length()) / log2(base))
    if exponent >= 0:
        S *= base ** exponent
    else:
        R *= base ** -exponent
    while R < S:
        R *= base
        exponent -= 1
    while R >= S * base:
        S *= base
        exponent += 1

    digits = []
    while True:
        U, R = divmod(R, S)
        digits.append(U)
        if len(digits) == count:
            break
        R *= base

    # Handle rounding by bumping
    if round_up(rounding, lost_fraction(R, S), sign, bool(digits[-1] & 1)):
        pos = len(digits)
        while True:
            pos -= 1
            digits[pos] = (digits[pos] + 1) % base
            if digits[pos]:
                break
            if pos == 0:
                digits[pos] = 1
                exponent += 1
                break

    return exponent, digits


def to_fixed(numerator, denominator, places, rounding, sign):
    '''Return the non-negative rational numerator / denominator multiplied by 10**places and
    rounded to an integer.'''
    scaled, remainder = divmod(numerator * 10 ** places, denominator)
    if round_up(rounding, lost_fraction(remainder, denominator), sign, bool(scaled & 1)):
        scaled += 1
    return scaled


def display_digits(precision):
    '''The number of significant decimal digits that distinguish values of precision bits.'''
    return 1 + ceil(precision * log10(2))


#
# Parsing
#

NON_FINITE_REGEX = re.compile('[-+]?@?(nan|inf(inity)?)@?$', re.ASCII | re.IGNORECASE)
HEX_SIGNIFICAND_PREFIX = re.compile('[-+]?0x', re.ASCII | re.IGNORECASE)
HEX_SIGNIFICAND_REGEX = re.compile(
    # sign[opt] hex-sig-prefix
    '[-+]?0x'
    # (hex-integer[opt].fraction or hex-integer.[opt])
    '(([0-9a-f]*)\\.([0-9a-f]+)|([0-9a-f]+)\\.?)'
    # p exp-sign[opt]dec-exponent   [opt]
    '(p([-+]?[0-9]+))?$',
    re.ASCII | re.IGNORECASE
)


@lru_cache(maxsize=None)
def real_regex(base):
    '''Return the compiled grammar of real numbers in base.'''
    chars = digit_alphabet(base)[:base]
    flags = re.ASCII | re.IGNORECASE if base <= 36 else re.ASCII
    # An 'e' exponent is only possible where 'e' is not a digit
    exp_chars = '@eE' if base <= 10 else '@'
    return re.compile(
        # sign[opt]
        '[-+]?'
        # (integer[opt].fraction or integer.[opt])
        f'(([{chars}]*)\\.([{chars}]+)|([{chars}]+)\\.?)'
        # exponent-char sign[opt]dec-exponent   [opt]
        f'([{exp_chars}]([-+]?[0-9]+))?$',
        flags
    )


def parse_real(text, base=10):
    '''Parse text as a finite real number.  Return its exact value as a pair (numerator,
    denominator).

    Digits may be followed by an exponent introduced by '@', which scales by a power of
    base, or for bases up to 10 by 'e'.  In bases 10 and 16 a hexadecimal significand
    with a binary exponent, e.g. 0x1.8p3, is also accepted.
    '''
    if not isinstance(text, str):
        raise TypeError('parse_real() requires a string')
    check_base(base)
    string = text.strip().replace('_', '')
    if NON_FINITE_REGEX.match(string):
        raise ValueError(f'NaN and infinity cannot be represented: {text!r}')
    negative = string[:1] == '-'

    if base in (10, 16) and HEX_SIGNIFICAND_PREFIX.match(string):
        match = HEX_SIGNIFICAND_REGEX.match(string)
        if match is None:
            raise ValueError(f'invalid hexadecimal float: {text!r}')
        groups = match.groups()
        exponent = int(groups[5] or 0)
        # If a fraction was specified, the integer and fraction parts are in groups[1],
        # groups[2].  If no fraction was specified the integer is in groups[3].
        if groups[1] is None:
            significand = int(groups[3], 16)
        else:
            fraction = groups[2].rstrip('0')
            significand = int((groups[1] + fraction) or '0', 16)
            exponent -= len(fraction) * 4
        radix = 2
    else:
        match = real_regex(base).match(string)
        if match is None:
            raise ValueError(f'invalid number in base {base}: {text!r}')
        groups = match.groups()
        exponent = int(groups[5] or 0)
        if groups[1] is None:
            significand = parse_digits(groups[3], base)
        else:
            fraction = groups[2]
            significand = parse_digits(groups[1] + fraction, base)
            exponent -= len(fraction)
        radix = base

    if negative:
        significand = -significand
    if exponent >= 0:
        return significand * radix ** exponent, 1
    return significand, radix ** -exponent


def split_complex(text):
    '''Split the text of a complex number into the texts of its real and imaginary parts.
    Accepts the forms of Python's complex(), e.g. '(1+2j)', '-3.5j' and '4'.'''
    if not isinstance(text, str):
        raise TypeError('split_complex() requires a string')
    string = text.strip()
    if string[:1] == '(' and string[-1:] == ')':
        string = string[1:-1].strip()
    if not string:
        raise ValueError(f'invalid complex number: {text!r}')
    if string[-1] not in 'jJ':
        return string, '0'
    body = string[:-1]
    # The imaginary part starts at the last sign not introducing an exponent
    for pos in range(len(body) - 1, 0, -1):
        if body[pos] in '+-' and body[pos - 1] not in 'eEpP@':
            real, imag = body[:pos], body[pos:]
            break
    else:
        real, imag = '0', body
    if imag in ('', '+', '-'):
        imag += '1'
    return real, imag


#
# The format() mini-language
#

FORMAT_SPEC_REGEX = re.compile(
    # [[fill]align]
    '(?:(?P<fill>.)?(?P<align>[<>^]))?'
    # [sign]
    '(?P<sign>[-+ ])?'
    # [width]
    '(?P<width>[0-9]+)?'
    # [.precision]
    '(?:\\.(?P<precision>[0-9]+))?'
    # [rounding]
    '(?P<rounding>[UDYZN])?'
    # [type]
    '(?P<type>[eEfFgGaA])?$',
    re.DOTALL
)

ROUNDING_CHARS = {
    'U': ROUND_CEILING,
    'D': ROUND_FLOOR,
    'Y': ROUND_UP,
    'Z': ROUND_DOWN,
    'N': ROUND_HALF_EVEN,
}


@attr.s(slots=True, frozen=True, kw_only=True)
class FormatSpec:
    '''A parsed format specification [[fill]align][sign][width][.precision][rounding][type]
    for Float and Complex values.'''

    fill = attr.ib(default=' ')
    align = attr.ib(default='>')
    sign = attr.ib(default='-')
    width = attr.ib(default=0)
    precision = attr.ib(default=None)
    # One of the ROUND_ constants, or None for the context's rounding mode
    rounding = attr.ib(default=None)
    type = attr.ib(default='')

    @classmethod
    def parse(cls, spec):
        match = FORMAT_SPEC_REGEX.match(spec)
        if match is None:
            raise ValueError(f'invalid format specifier: {spec!r}')
        groups = match.groupdict()
        return cls(
            fill=groups['fill'] or ' ',
            align=groups['align'] or '>',
            sign=groups['sign'] or '-',
            width=int(groups['width'] or 0),
            precision=None if groups['precision'] is None else int(groups['precision']),
            rounding=ROUNDING_CHARS.get(groups['rounding']),
            type=groups['type'] or '',
        )

    def signed(self, sign, text):
        '''Prefix text, the formatted magnitude, with the sign.'''
        if sign:
            return '-' + text
        if self.sign == '+':
            return '+' + text
        if self.sign == ' ':
            return ' ' + text
        return text

    def pad(self, text):
        '''Align text in the field width.'''
        padding = self.width - len(text)
        if padding <= 0:
            return text
        if self.align == '<':
            return text + self.fill * padding
        if self.align == '^':
            left = padding // 2
            return self.fill * left + text + self.fill * (padding - left)
        return self.fill * padding + text


def format_real(spec, sign, numerator, denominator, bits, rounding):
    '''Format the magnitude numerator / denominator of a value with the given sign.  bits is
    the value's precision and rounding the rounding mode used when spec names none.

    Without a type the value is shown as str() shows it, to spec.precision significant
    digits if given.
    '''
    rounding = spec.rounding or rounding
    kind = spec.type.lower()
    precision = spec.precision

    if kind == 'a':
        text = format_hex_magnitude(sign, numerator, denominator, bits, precision, rounding)
    elif kind == 'f':
        places = 6 if precision is None else precision
        scaled = to_fixed(numerator, denominator, places, rounding, sign)
        text = Dec_f_Format.format_fixed(False, scaled, places)
    else:
        if kind == 'e':
            count = (6 if precision is None else precision) + 1
        elif kind == 'g':
            count = (6 if precision is None else precision) or 1
        else:
            count = precision or display_digits(bits)
        if numerator:
            exponent, digits = to_digits(numerator, denominator, count, rounding, sign)
            digits = digits_to_str(digits, 10)
        else:
            exponent, digits = 0, '0' * count
        text_format = {'e': Dec_e_Format, 'g': Dec_g_Format}.get(kind, DisplayFormat)
        text = text_format.format_decimal(False, exponent, digits, count)

    if spec.type.isupper():
        text = text.upper()
    return spec.pad(spec.signed(sign, text))


def format_hex_magnitude(sign, numerator, denominator, bits, precision, rounding):
    '''Format the magnitude numerator / denominator, whose denominator is a power of two,
    as a hexadecimal float.  With precision, round to that many hexadecimal digits after
    the point.'''
    if not numerator:
        return HexFormat.format_hex(False, 0, 0, bits)
    exponent = numerator.bit_length() - denominator.bit_length()
    if precision is None:
        # The value has at most bits significant bits so no set bit is lost
        significand, _ = shift_right(numerator, numerator.bit_length() - bits)
    else:
        bits = precision * 4 + 1
        significand, lost = shift_right(numerator, numerator.bit_length() - bits)
        if round_up(rounding, lost, sign, bool(significand & 1)):
            significand += 1
            # Rounding up may have carried into a new bit
            if significand.bit_length() > bits:
                significand >>= 1
                exponent += 1
    return HexFormat.format_hex(False, significand, exponent, bits)
