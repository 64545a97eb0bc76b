#
# Precision, rounding and sticky-flag state shared by every Float and Complex operation
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import copy
import logging
import sys
import threading
from enum import IntFlag

from mpmath.libmp import round_nearest, round_down, round_up, round_ceiling, round_floor


__all__ = ('Context', 'DefaultContext', 'get_context', 'set_context', 'local_context',
           'context_active', 'set_rounding_mode', 'set_default_precision',
           'set_min_precision', 'set_exponent_range', 'get_flags', 'clear_flags',
           'Flags', 'TowerError', 'InvalidOperation', 'DivisionByZero', 'Overflow',
           'Underflow', 'Inexact',
           'ROUND_HALF_EVEN', 'ROUND_DOWN', 'ROUND_CEILING', 'ROUND_FLOOR', 'ROUND_UP',
           'ROUNDING_MODES', 'DEFAULT_PRECISION', 'GUARD_BITS')

logger = logging.getLogger(__name__)


# Rounding modes
ROUND_HALF_EVEN = 'ROUND_HALF_EVEN'     # To nearest with ties towards even
ROUND_DOWN      = 'ROUND_DOWN'          # Towards zero
ROUND_CEILING   = 'ROUND_CEILING'       # Towards +infinity
ROUND_FLOOR     = 'ROUND_FLOOR'         # Towards -infinity
ROUND_UP        = 'ROUND_UP'            # Away from zero

# In the order of their enum byte in the binary format
ROUNDING_MODES = (ROUND_HALF_EVEN, ROUND_DOWN, ROUND_CEILING, ROUND_FLOOR, ROUND_UP)

# The backend's name for each rounding mode
BACKEND_ROUNDING = {
    ROUND_HALF_EVEN: round_nearest,
    ROUND_DOWN: round_down,
    ROUND_CEILING: round_ceiling,
    ROUND_FLOOR: round_floor,
    ROUND_UP: round_up,
}

# The precision of the host's native double
DEFAULT_PRECISION = sys.float_info.mant_dig

# Extra bits given to a Float built with precision 1 from an input that is not
# radix-2 exact
GUARD_BITS = 16

# The backend's limits on precision and exponent
MIN_PRECISION = 2
MAX_PRECISION = sys.maxsize >> 8
MAX_EXPONENT = (1 << 30) - 1


# Sticky status flags
class Flags(IntFlag):
    INVALID     = 0x01
    DIV_BY_ZERO = 0x02
    OVERFLOW    = 0x04
    UNDERFLOW   = 0x08
    INEXACT     = 0x10


#
# Signals
#

class TowerError(ArithmeticError):
    '''Base of the arithmetic signals.  Instances are built as
    TowerError(op_tuple, message), where op_tuple holds the operation name and its operands.

    A signal that also has a builtin meaning lists TowerError first and the builtin second,
    as DivisionByZero does.
    '''

    flag_to_raise = 0
    # If True the operation cannot deliver a result, so signalling always raises
    always_raise = False

    @property
    def op_tuple(self):
        return self.args[0]

    def __str__(self):
        return self.args[1]

    def signal(self, context=None):
        '''Call to signal an exception.  Raise the flag in the context, then raise the
        exception if the flag is trapped or the operation has no result to deliver.'''
        context = context or get_context()
        context.flags |= self.flag_to_raise
        if self.always_raise or context.traps & self.flag_to_raise:
            raise self


class InvalidOperation(TowerError, ValueError):
    '''Signalled when an operation has no usefully defineable result, for example the square
    root of a negative number.  The tower has no NaN so this always raises.'''

    flag_to_raise = Flags.INVALID
    always_raise = True


class DivisionByZero(TowerError, ZeroDivisionError):
    '''Signalled by any division-family operator with a zero divisor.  Always raises.'''

    flag_to_raise = Flags.DIV_BY_ZERO
    always_raise = True


class Overflow(TowerError, OverflowError):
    '''Signalled when, after rounding, the result would have an exponent exceeding emax.  The
    tower has no infinity so this always raises.'''

    flag_to_raise = Flags.OVERFLOW | Flags.INEXACT
    always_raise = True


class Underflow(TowerError):
    '''Signalled when a non-zero result has an exponent below emin.  The result delivered is
    zero.'''

    flag_to_raise = Flags.UNDERFLOW | Flags.INEXACT


class Inexact(TowerError):
    '''Signalled when the infinitely precise result cannot be represented.'''

    flag_to_raise = Flags.INEXACT


def _check_precision(precision, name='precision'):
    if not isinstance(precision, int) or isinstance(precision, bool):
        raise TypeError(f'{name} must be an integer')
    if not MIN_PRECISION <= precision <= MAX_PRECISION:
        raise ValueError(f'{name} must be between {MIN_PRECISION} and {MAX_PRECISION:,d}')
    return precision


class Context:
    '''The execution context for Float and Complex operations.  Carries the default
    precision, the rounding mode, the exponent range, sticky status flags and traps.

    Integer and Rational operations are exact and never consult the context.
    '''

    __slots__ = ('precision', 'rounding', 'min_precision', 'emin', 'emax', 'flags', 'traps')

    def __init__(self, *, precision=DEFAULT_PRECISION, rounding=ROUND_HALF_EVEN,
                 min_precision=MIN_PRECISION, emin=-MAX_EXPONENT, emax=MAX_EXPONENT,
                 flags=0, traps=0):
        '''precision is the precision in bits of results when no operand dictates one.
        rounding is one of the ROUND_ constants.  Requested precisions below min_precision
        are raised to it.  emin and emax bound the exponent of a result written as
        0.1xxx * 2^exponent.  flags represents the initially raised flags; a flag also set
        in traps raises its exception when signalled.
        '''
        self.precision = _check_precision(precision)
        self.min_precision = _check_precision(min_precision, 'min_precision')
        self._check_rounding(rounding)
        self.rounding = rounding
        self._check_exponent_range(emin, emax)
        self.emin = emin
        self.emax = emax
        self.flags = Flags(flags)
        self.traps = Flags(traps)

    @staticmethod
    def _check_rounding(rounding):
        if rounding not in BACKEND_ROUNDING:
            raise ValueError(f'invalid rounding mode: {rounding!r}')

    @staticmethod
    def _check_exponent_range(emin, emax):
        if not all(isinstance(e, int) and not isinstance(e, bool) for e in (emin, emax)):
            raise TypeError('emin and emax must be integers')
        if not -MAX_EXPONENT <= emin < 0 < emax <= MAX_EXPONENT:
            raise ValueError(f'exponent range must satisfy {-MAX_EXPONENT:,d} <= emin < 0 '
                             f'< emax <= {MAX_EXPONENT:,d}')

    def copy(self):
        '''Return a copy of the context.'''
        return copy.copy(self)

    def set_rounding_mode(self, rounding):
        self._check_rounding(rounding)
        logger.debug('rounding mode %s -> %s', self.rounding, rounding)
        self.rounding = rounding

    def set_default_precision(self, precision):
        _check_precision(precision)
        logger.debug('default precision %d -> %d', self.precision, precision)
        self.precision = precision

    def set_min_precision(self, precision):
        _check_precision(precision, 'min_precision')
        logger.debug('minimum precision %d -> %d', self.min_precision, precision)
        self.min_precision = precision

    def set_exponent_range(self, emin, emax):
        self._check_exponent_range(emin, emax)
        logger.debug('exponent range [%d, %d] -> [%d, %d]', self.emin, self.emax, emin, emax)
        self.emin = emin
        self.emax = emax

    def clear_flags(self):
        '''Reset all sticky flags.  This is the only way flags are lowered.'''
        logger.debug('clearing flags %r', self.flags)
        self.flags = Flags(0)

    def effective_precision(self, precision):
        '''Return the precision an operation requesting precision should deliver.  0 means the
        context default.  Requests below the minimum precision are raised to it.'''
        if precision == 0:
            precision = self.precision
        else:
            _check_precision(precision)
        return max(precision, self.min_precision)

    @property
    def backend_rounding(self):
        '''The rounding mode as the backend names it.'''
        return BACKEND_ROUNDING[self.rounding]

    def __repr__(self):
        return (f'<Context precision={self.precision} rounding={self.rounding} '
                f'emin={self.emin} emax={self.emax} flags={self.flags!r} '
                f'traps={self.traps!r}>')


#
# Exported functions
#

DefaultContext = Context()
tls = threading.local()


def get_context():
    '''Return the current thread's context, activating it from DefaultContext on first
    use.'''
    try:
        return tls.context
    except AttributeError:
        tls.context = DefaultContext.copy()
        logger.debug('activated context for thread %s', threading.current_thread().name)
        return tls.context


def set_context(context):
    '''Install context itself, not a copy, as the current thread's context.'''
    if not isinstance(context, Context):
        raise TypeError('set_context() requires a Context instance')
    tls.context = context


def context_active():
    '''Return True if the current thread's context has been activated.'''
    return hasattr(tls, 'context')


class LocalContext:
    '''Run a with-block under a copy of context, or of the current context if none is
    given, with keyword changes applied through the Context setters.  The previous context
    is reinstated on exit, even when the block raises.
    '''

    _setters = {
        'precision': 'set_default_precision',
        'rounding': 'set_rounding_mode',
        'min_precision': 'set_min_precision',
    }

    def __init__(self, context=None, **changes):
        unknown = set(changes) - set(self._setters) - {'emin', 'emax', 'traps'}
        if unknown:
            raise TypeError(f'invalid context keyword(s): {", ".join(sorted(unknown))}')
        self.saved_context = None
        self.context_to_set = context
        self.changes = changes

    def __enter__(self):
        self.saved_context = get_context()
        context = (self.context_to_set or self.saved_context).copy()
        changes = dict(self.changes)
        for name, setter in self._setters.items():
            if name in changes:
                getattr(context, setter)(changes.pop(name))
        if 'emin' in changes or 'emax' in changes:
            context.set_exponent_range(changes.pop('emin', context.emin),
                                       changes.pop('emax', context.emax))
        if 'traps' in changes:
            context.traps = Flags(changes.pop('traps'))
        set_context(context)
        return context

    def __exit__(self, etype, value, traceback):
        set_context(self.saved_context)


local_context = LocalContext


def set_rounding_mode(rounding):
    get_context().set_rounding_mode(rounding)


def set_default_precision(precision):
    get_context().set_default_precision(precision)


def set_min_precision(precision):
    get_context().set_min_precision(precision)


def set_exponent_range(emin, emax):
    get_context().set_exponent_range(emin, emax)


def get_flags():
    return get_context().flags


def clear_flags():
    get_context().clear_flags()
