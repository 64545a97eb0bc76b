import copy
import math
import numbers
import pickle
from decimal import Decimal
from fractions import Fraction

import pytest

from mptower import *
from mptower.context import GUARD_BITS
from mptower.tower import NumberClass, classify, exact_ratio


class Indexable:
    def __index__(self):
        return 7


class Ratio:
    numerator = 3
    denominator = 4


class Floaty:
    def __float__(self):
        return 2.5


class Complexy:
    def __complex__(self):
        return 1j


class TestClassify:

    @pytest.mark.parametrize('value, number_class', (
        (1, NumberClass.INTEGER_LIKE),
        (True, NumberClass.INTEGER_LIKE),
        (Integer(3), NumberClass.INTEGER_LIKE),
        (Indexable(), NumberClass.INTEGER_LIKE),
        (Fraction(1, 2), NumberClass.RATIONAL_LIKE),
        (Rational(1, 2), NumberClass.RATIONAL_LIKE),
        (Ratio(), NumberClass.RATIONAL_LIKE),
        (1.5, NumberClass.FLOAT_LIKE),
        (Decimal('1.5'), NumberClass.FLOAT_LIKE),
        (Float(1.5), NumberClass.FLOAT_LIKE),
        (Floaty(), NumberClass.FLOAT_LIKE),
        (1j, NumberClass.COMPLEX_LIKE),
        (Complex(1, 2), NumberClass.COMPLEX_LIKE),
        (Complexy(), NumberClass.COMPLEX_LIKE),
        ('1', NumberClass.NOT_A_NUMBER),
        (b'1', NumberClass.NOT_A_NUMBER),
        (None, NumberClass.NOT_A_NUMBER),
        ([], NumberClass.NOT_A_NUMBER),
        (object(), NumberClass.NOT_A_NUMBER),
    ))
    def test_classify(self, value, number_class):
        assert classify(value) == number_class

    def test_lattice_order(self):
        assert (NumberClass.NOT_A_NUMBER < NumberClass.INTEGER_LIKE
                < NumberClass.RATIONAL_LIKE < NumberClass.FLOAT_LIKE
                < NumberClass.COMPLEX_LIKE)

    def test_abstract_classes(self):
        assert isinstance(Integer(1), numbers.Integral)
        assert isinstance(Rational(1, 2), numbers.Rational)
        assert isinstance(Float(1), numbers.Real)
        assert isinstance(Complex(1), numbers.Complex)
        assert not isinstance(Float(1), numbers.Rational)

    def test_exact_ratio(self):
        assert exact_ratio(0.5) == (1, 2)
        assert exact_ratio(Decimal('0.1')) == (1, 10)
        assert exact_ratio(Floaty()) == (5, 2)
        assert exact_ratio(Ratio()) == (3, 4)
        with pytest.raises(ValueError):
            exact_ratio(float('nan'))
        with pytest.raises(ValueError):
            exact_ratio(Decimal('-Infinity'))
        with pytest.raises(TypeError):
            exact_ratio(1j)


class TestInteger:

    @pytest.mark.parametrize('args, value', (
        ((), 0),
        ((5, ), 5),
        ((True, ), 1),
        ((Indexable(), ), 7),
        ((3.9, ), 3),
        ((-3.9, ), -3),
        ((Fraction(-7, 2), ), -3),
        ((Decimal('2.5'), ), 2),
        ((Rational(7, 2), ), 3),
        ((Float(-2.75), ), -2),
        (('0x10', ), 16),
        (('-0b101', ), -5),
        ((' 42 ', ), 42),
        (('z', 36), 35),
        (('Z', 62), 35),
        (('z', 62), 61),
    ))
    def test_construct(self, args, value):
        result = Integer(*args)
        assert isinstance(result, Integer)
        assert result.value == value

    @pytest.mark.parametrize('args, exception', (
        ((float('nan'), ), ValueError),
        ((float('inf'), ), OverflowError),
        ((1j, ), TypeError),
        ((None, ), TypeError),
        ((5, 10), TypeError),
        (('12', 63), ValueError),
        (('12', 1), ValueError),
        (('1.5', ), ValueError),
        (('9', 8), ValueError),
    ))
    def test_construct_bad(self, args, exception):
        with pytest.raises(exception):
            Integer(*args)

    def test_identity(self):
        value = Integer(5)
        assert Integer(value) is value
        assert copy.copy(value) is value
        assert copy.deepcopy(value) is value

    def test_properties(self):
        value = Integer(-12)
        assert value.numerator is value
        assert value.denominator == 1
        assert value.real is value
        assert value.imag == 0
        assert value.conjugate() is value
        assert value.bit_length() == 4

    @pytest.mark.parametrize('value, base, text', (
        (255, 16, '0xff'),
        (-255, 16, '-0xff'),
        (255, 2, '0b11111111'),
        (8, 8, '0o10'),
        (-1234, 10, '-1234'),
        (100, 36, '2s'),
        (61, 62, 'z'),
        (3843, 62, 'zz'),
        (0, 7, '0'),
    ))
    def test_digits(self, value, base, text):
        assert Integer(value).digits(base) == text

    def test_digits_bad_base(self):
        with pytest.raises(ValueError):
            Integer(5).digits(63)

    def test_conversions(self):
        value = Integer(-7)
        assert int(value) == -7 and type(int(value)) is int
        assert float(value) == -7.0
        assert complex(value) == -7
        assert [10, 20, 30][Integer(1)] == 20
        assert bool(value) and not bool(Integer(0))
        assert math.trunc(value) is value
        assert math.floor(value) is value
        assert math.ceil(value) is value
        assert round(value) is value
        assert round(Integer(1234), -2) == 1200

    @pytest.mark.parametrize('value', (0, -1, 1, 2**70, -2**70 - 1))
    def test_hash(self, value):
        assert hash(Integer(value)) == hash(value)

    def test_text(self):
        assert str(Integer(-42)) == '-42'
        assert repr(Integer(-42)) == 'Integer(-42)'
        assert format(Integer(255), 'x') == 'ff'
        assert format(Integer(5), '>4') == '   5'
        assert format(Integer(1234567), ',') == '1,234,567'


class TestRational:

    @pytest.mark.parametrize('args, pair', (
        ((), (0, 1)),
        ((6, -4), (-3, 2)),
        ((0, 5), (0, 1)),
        ((-4, -6), (2, 3)),
        ((4, 2), (2, 1)),
        ((Fraction(1, 2), Fraction(3, 4)), (2, 3)),
        ((0.5, ), (1, 2)),
        ((Decimal('0.1'), ), (1, 10)),
        ((Float(0.1), ), Fraction(0.1).as_integer_ratio()),
        ((Integer(3), Integer(6)), (1, 2)),
        (('3/4', ), (3, 4)),
        (('-6/8', ), (-3, 4)),
        ((' 7 ', ), (7, 1)),
        (('ff/2', 16), (255, 2)),
        (('0.1', ), (1, 10)),
        (('1.5', ), (3, 2)),
        (('-2.25', ), (-9, 4)),
        (('1e3', ), (1000, 1)),
    ))
    def test_construct(self, args, pair):
        result = Rational(*args)
        assert isinstance(result, Rational)
        assert result.pair == pair

    @pytest.mark.parametrize('args, exception', (
        ((1, 0), ZeroDivisionError),
        (('1/0', ), ZeroDivisionError),
        ((float('nan'), ), ValueError),
        ((float('inf'), ), ValueError),
        ((1j, ), TypeError),
        ((None, ), TypeError),
        (('1/2', 3), TypeError),
        ((1, 2, 16), TypeError),
        (('1/x', ), ValueError),
    ))
    def test_construct_bad(self, args, exception):
        with pytest.raises(exception):
            Rational(*args)

    def test_properties(self):
        value = Rational(-3, 4)
        assert isinstance(value.numerator, Integer)
        assert value.numerator == -3
        assert value.denominator == 4
        assert value.as_integer_ratio() == (-3, 4)
        assert value.real is value
        assert value.imag == 0
        assert value.conjugate() is value

    def test_conversions(self):
        assert int(Rational(-7, 2)) == -3
        assert math.trunc(Rational(-7, 2)) == -3
        assert math.floor(Rational(-7, 2)) == -4
        assert math.ceil(Rational(-7, 2)) == -3
        assert isinstance(math.floor(Rational(-7, 2)), Integer)
        assert round(Rational(5, 2)) == 2
        assert round(Rational(7, 2)) == 4
        assert round(Rational(1, 3), 2) == Fraction(33, 100)
        assert float(Rational(1, 3)) == 1 / 3
        assert complex(Rational(1, 4)) == 0.25
        assert not Rational(0, 3)

    @pytest.mark.parametrize('pair', ((1, 3), (-1, 3), (2, 1), (0, 1), (1, 2**80)))
    def test_hash(self, pair):
        assert hash(Rational(*pair)) == hash(Fraction(*pair))

    def test_text(self):
        assert str(Rational(3, 4)) == '3/4'
        assert str(Rational(-4, 2)) == '-2'
        assert repr(Rational(3, 4)) == 'Rational(3, 4)'
        assert Rational(255, 2).digits(16) == '0xff/0x2'
        assert Rational(-5, 7).digits(2) == '-0b101/0b111'

    def test_format(self):
        assert format(Rational(1, 3)) == '1/3'
        assert format(Rational(1, 3), '.3f') == '0.333'
        assert format(Rational(2, 3), '.3Df') == '0.666'
        assert format(Rational(-1, 8), '.2e') == '-1.25e-01'
        with pytest.raises(ValueError):
            format(Rational(1, 3), 'a')


class TestFloat:

    @pytest.mark.parametrize('precision', (2, 10, 53, 100, 1000))
    def test_precision(self, context, precision):
        assert Float('0.1', precision).precision == precision
        assert Float(1, precision).precision == precision
        assert Float(Fraction(1, 3), precision).precision == precision
        assert Float(0.1, precision).precision == precision

    def test_default_precision(self, context):
        assert Float(1).precision == 53
        set_default_precision(80)
        assert Float(1).precision == 80
        assert Float(1.5, 0).precision == 80

    @pytest.mark.parametrize('value, precision', (
        (1.5, 53),
        (1, 2),
        (2**100 + 1, 101),
        (-255, 8),
        (Fraction(3, 8), 2),
        (Fraction(1, 3), 53 + GUARD_BITS),
        ('0.1', 53 + GUARD_BITS),
        (Decimal('0.5'), 53 + GUARD_BITS),
    ))
    def test_exact_precision(self, context, value, precision):
        result = Float(value, 1)
        assert result.precision == precision
        if precision != 53 + GUARD_BITS:
            assert result.rc == ResultCode.EXACT

    def test_exact_precision_float(self, context):
        assert Float(Float(1, 80), 1).precision == 80

    def test_min_precision(self, context):
        with local_context(min_precision=100):
            assert Float(1.5, 10).precision == 100
            assert Float(1.5, 200).precision == 200

    def test_identity(self, context):
        value = Float(1.5)
        assert Float(value) is value
        assert Float(value, 53) is value
        assert copy.copy(value) is value
        assert copy.deepcopy(value) is value
        assert Float(value, 80) is not value

    def test_result_codes(self, context):
        assert Float(1.5).rc == ResultCode.EXACT
        assert Float('0.1').rc == ResultCode.ROUNDED_UP
        assert Float('0.1').rounding == ROUND_HALF_EVEN
        assert Float('-0.1').rc == ResultCode.ROUNDED_DOWN
        assert Float(Fraction(1, 3)).rc == ResultCode.ROUNDED_DOWN
        with local_context(rounding=ROUND_CEILING):
            value = Float(Fraction(1, 3))
        assert value.rc == ResultCode.ROUNDED_UP
        assert value.rounding == ROUND_CEILING

    def test_rounding_to_precision(self, context):
        value = Float(Float('0.1'), 10)
        assert value.precision == 10
        assert value.as_integer_ratio() == (819, 8192)
        assert value.rc == ResultCode.ROUNDED_DOWN

    @pytest.mark.parametrize('args, value', (
        (('0.1', ), 0.1),
        (('1.5e2', ), 150),
        (('1.5E2', ), 150),
        (('1.5@2', ), 150),
        (('-.25', ), -0.25),
        (('7.', ), 7),
        (('1_000', ), 1000),
        (('0x1.8p3', ), 12),
        (('-0x10', ), -16),
        (('11.1', 0, 2), 3.5),
        (('z', 0, 62), 61),
        (('1@2', 0, 16), 256),
        (('1e5', 0, 16), 485),
        ((Decimal('0.1'), ), 0.1),
        ((Fraction(1, 4), ), 0.25),
        ((Rational(1, 4), ), 0.25),
        ((Integer(-3), ), -3),
        ((Floaty(), ), 2.5),
    ))
    def test_construct(self, context, args, value):
        result = Float(*args)
        assert isinstance(result, Float)
        assert result == value

    @pytest.mark.parametrize('args, exception', (
        ((1j, ), TypeError),
        ((Complex(1, 0), ), TypeError),
        ((None, ), TypeError),
        (('nan', ), ValueError),
        (('-inf', ), ValueError),
        (('Infinity', ), ValueError),
        ((float('inf'), ), ValueError),
        ((float('nan'), ), ValueError),
        (('1.2.3', ), ValueError),
        (('', ), ValueError),
        ((1, -5), ValueError),
        ((1, 2.5), TypeError),
        ((1.5, 0, 16), TypeError),
        (('1', 0, 63), ValueError),
    ))
    def test_construct_bad(self, context, args, exception):
        with pytest.raises(exception):
            Float(*args)

    def test_properties(self, context):
        value = Float(-0.75)
        assert value.real is value
        assert value.imag == 0 and value.imag.precision == 53
        assert value.conjugate() is value
        assert value.is_negative() and not value.is_zero()
        assert Float(0).is_zero()
        assert not value.is_integer()
        assert Float(2.0).is_integer()
        assert value.as_integer_ratio() == (-3, 4)

    def test_conversions(self, context):
        assert float(Float('0.1')) == 0.1
        assert float(Float(Fraction(1, 3), 200)) == 1 / 3
        assert int(Float(-2.5)) == -2
        assert math.trunc(Float(-2.5)) == -2
        assert math.floor(Float(-2.5)) == -3
        assert math.ceil(Float(-2.5)) == -2
        assert isinstance(math.floor(Float(-2.5)), Integer)
        assert round(Float(2.5)) == 2
        assert round(Float(3.5)) == 4
        assert round(Float(1.25), 1) == Float(1.2)
        assert round(Float(1.25), 1).precision == 53
        assert complex(Float(1.5)) == 1.5
        assert not Float(0)

    @pytest.mark.parametrize('value', (0.0, 1.5, 0.1, -3.0, 2.0**-60, 1e300))
    def test_hash(self, context, value):
        assert hash(Float(value)) == hash(value)

    def test_hash_exact(self, context):
        assert hash(Float(3)) == hash(3) == hash(Rational(3))
        assert hash(Float(0.375)) == hash(Fraction(3, 8))
        assert len({Integer(1), Rational(1), Float(1), 1, 1.0}) == 1

    @pytest.mark.parametrize('value, text', (
        (1.5, '1.5'),
        (2, '2.0'),
        (-0.25, '-0.25'),
        (1e20, '1.0e+20'),
        (0.1, '0.10000000000000001'),
        (0, '0.0'),
        (123456.0, '123456.0'),
        (2.0**-20, '9.5367431640625e-07'),
    ))
    def test_str(self, context, value, text):
        assert str(Float(value)) == text

    def test_repr(self, context):
        assert repr(Float(1.5)) == "Float('1.5')"
        assert repr(Float(1.5, 100)) == "Float('1.5', precision=100)"
        assert repr(Float('0.1', 10)) == "Float('0.099976', precision=10)"

    @pytest.mark.parametrize('value', (0.1, 1 / 3, 2.0**-30, 12345.678, -1e-200))
    def test_text_round_trip(self, context, value):
        value = Float(value)
        assert Float(str(value)) == value
        assert eval(repr(value), {'Float': Float}) == value

    def test_text_round_trip_precision(self, context):
        value = Float(Fraction(1, 3), 200)
        assert eval(repr(value), {'Float': Float}) == value

    def test_digits(self, context):
        assert Float(1.5).digits() == ('15000000000000000', 1, 53)
        assert Float(-0.5).digits(10, 3) == ('-500', 0, 53)
        assert Float(0).digits() == ('0', 0, 53)
        assert Float(8).digits(2, 4) == ('1000', 4, 53)
        assert Float(255, 8).digits(16) == ('ff0', 2, 8)
        with pytest.raises(ValueError):
            Float(1).digits(1)

    @pytest.mark.parametrize('value, spec, text', (
        (1.5, '.3f', '1.500'),
        (1.5, 'f', '1.500000'),
        (1234.5, '.2e', '1.23e+03'),
        (1234.5, '.3g', '1.23e+03'),
        (1234.5, 'g', '1234.5'),
        (1.5, '.2E', '1.50E+00'),
        (0.5, '+.1f', '+0.5'),
        (0.5, ' .1f', ' 0.5'),
        (-0.5, '.0f', '-0'),
        (1.5, '>8.2f', '    1.50'),
        (1.5, '*<8.2f', '1.50****'),
        (1.5, '^7.1f', '  1.5  '),
        (1.5, 'a', '0x1.8000000000000p+0'),
        (1.5, '.1a', '0x1.8p+0'),
        (-0.1, '.3a', '-0x1.99ap-4'),
        (0.1, '.1', '0.1'),
        (0.1, '', '0.10000000000000001'),
        (0.0, '.2e', '0.00e+00'),
    ))
    def test_format(self, context, value, spec, text):
        assert format(Float(value), spec) == text

    def test_format_rounding(self, context):
        value = Float(2) / 3
        assert format(value, '.3Uf') == '0.667'
        assert format(value, '.3Df') == '0.666'
        assert format(value, '.2Nf') == '0.67'
        assert format(-value, '.3Yf') == '-0.667'
        assert format(-value, '.3Zf') == '-0.666'
        set_rounding_mode(ROUND_DOWN)
        assert format(value, '.3f') == '0.666'
        # str() always rounds to nearest
        assert str(value) == '0.66666666666666663'

    def test_format_bad(self, context):
        with pytest.raises(ValueError):
            format(Float(1), 'x')
        with pytest.raises(ValueError):
            format(Float(1), '.2Q')

    def test_pickle(self, context):
        value = Float('0.1', 100)
        result = pickle.loads(pickle.dumps(value))
        assert result == value
        assert result.precision == 100
        assert result.rc == value.rc


class TestComplex:

    @pytest.mark.parametrize('args, value', (
        ((), 0),
        ((1, 2), 1 + 2j),
        ((1.5, ), 1.5),
        ((1 + 2j, ), 1 + 2j),
        ((Fraction(1, 2), Integer(3)), 0.5 + 3j),
        (('(1+2j)', ), 1 + 2j),
        (('3j', ), 3j),
        (('-j', ), -1j),
        (('5', ), 5),
        (('-1.5-2e3j', ), complex(-1.5, -2000)),
        (('1e-3+1e+3j', ), complex(0.001, 1000)),
    ))
    def test_construct(self, context, args, value):
        result = Complex(*args)
        assert isinstance(result, Complex)
        assert isinstance(result.real, Float) and isinstance(result.imag, Float)
        assert result == value

    @pytest.mark.parametrize('args, exception', (
        ((1j, 2), TypeError),
        (('1', 2), TypeError),
        ((1, 1j), TypeError),
        ((None, ), TypeError),
        ((1, 2, (1, 2, 3)), ValueError),
        (('', ), ValueError),
        (('()', ), ValueError),
        (('1+2k', ), ValueError),
    ))
    def test_construct_bad(self, context, args, exception):
        with pytest.raises(exception):
            Complex(*args)

    def test_precision(self, context):
        value = Complex(1, 2, (100, 60))
        assert value.precision == (100, 60)
        assert Complex(1, 2).precision == (53, 53)
        assert Complex(1, 2, 80).precision == (80, 80)
        assert Complex('0.1+0.1j').rc == (ResultCode.ROUNDED_UP, ResultCode.ROUNDED_UP)
        assert Complex(value) is value

    def test_conversions(self, context):
        value = Complex(1, -2)
        assert complex(value) == 1 - 2j
        assert value.conjugate() == 1 + 2j
        assert bool(value)
        assert not Complex(0, 0)
        with pytest.raises(TypeError):
            float(value)

    @pytest.mark.parametrize('value', (1 + 2j, 1.5 + 0j, -0.25j, complex(1e300, -3)))
    def test_hash(self, context, value):
        assert hash(Complex(value)) == hash(value)

    def test_text(self, context):
        assert str(Complex(1, 2)) == '(1.0+2.0j)'
        assert str(Complex(1, -2)) == '(1.0-2.0j)'
        assert str(Complex(0.1, 0)) == '(0.10000000000000001+0.0j)'
        assert repr(Complex(1, 2)) == "Complex('1.0+2.0j')"
        assert repr(Complex(1, 2, (100, 60))) == "Complex('1.0+2.0j', precision=(100, 60))"
        assert Complex(repr(Complex(1.5, -0.25))[9:-2]) == 1.5 - 0.25j
        assert format(Complex(1, 2), '.2f') == '1.00+2.00j'
        assert format(Complex(1, -2), '>12.1f') == '    1.0-2.0j'

    def test_pickle(self, context):
        value = Complex(1, 0.1, (60, 100))
        result = pickle.loads(pickle.dumps(value))
        assert result == value
        assert result.precision == (60, 100)


class TestCoercionFunctions:

    def test_to_integer(self):
        assert isinstance(to_integer(5), Integer)
        assert to_integer(Indexable()) == 7
        value = Integer(3)
        assert to_integer(value) is value
        for bad in (1.5, Fraction(1, 2), '5', 1j):
            with pytest.raises(TypeError):
                to_integer(bad)

    def test_to_rational(self):
        assert to_rational(0.5).pair == (1, 2)
        assert to_rational(Integer(4)).pair == (4, 1)
        value = Rational(1, 3)
        assert to_rational(value) is value
        with pytest.raises(TypeError):
            to_rational(1j)
        with pytest.raises(ValueError):
            to_rational(float('inf'))

    def test_to_float(self, context):
        assert to_float(1, 100).precision == 100
        assert to_float(Fraction(1, 3)).precision == 53
        assert to_float(Integer(12345), 1).precision == 14
        for bad in ('1', 1j, None):
            with pytest.raises(TypeError):
                to_float(bad)

    def test_to_complex(self, context):
        value = to_complex(1)
        assert isinstance(value, Complex)
        assert value.imag == 0
        assert to_complex(0.5, (80, 60)).precision == (80, 60)
        with pytest.raises(TypeError):
            to_complex('x')

    def test_pickle(self):
        for value in (Integer(-5), Rational(3, 4)):
            result = pickle.loads(pickle.dumps(value))
            assert type(result) is type(value)
            assert result == value
