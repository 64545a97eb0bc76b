#
# Free lists of backend storage cells for Integer and Rational values
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import logging
import sys
import threading
from enum import IntEnum


__all__ = ('Kind', 'Slot', 'Storage', 'ValueCache', 'get_value_cache', 'get_cache',
           'set_cache', 'acquire', 'release', 'LIMB_BITS', 'MAX_CACHE', 'MAX_CACHE_LIMBS')

logger = logging.getLogger(__name__)

# The width of a backend limb on this host
LIMB_BITS = 64 if sys.maxsize > 2**32 else 32

MAX_CACHE = 1000
MAX_CACHE_LIMBS = 16384
DEFAULT_CACHE_SIZE = 100
DEFAULT_CACHE_LIMBS = 128


class Kind(IntEnum):
    '''The kinds of boxed value.  The values are the kind tags of the binary format.'''
    INTEGER = 1
    RATIONAL = 2
    FLOAT = 3
    COMPLEX = 4


# The number of integers a storage cell of each cacheable kind holds
_PART_COUNTS = {Kind.INTEGER: 1, Kind.RATIONAL: 2}


def limbs_needed(value):
    '''Return the number of limbs needed to hold the magnitude of an integer.'''
    return max(1, (abs(value).bit_length() + LIMB_BITS - 1) // LIMB_BITS)


class Storage:
    '''An allocated backend storage cell.

    A cell is either written, when its parts can be read, or released, when it sits in a
    free list or has been freed.  alloc is the number of limbs allocated; like a GMP
    integer it grows to fit the largest value written and never shrinks.
    '''

    __slots__ = ('kind', 'alloc', '_parts')

    def __init__(self, kind):
        self.kind = kind
        self.alloc = 0
        self._parts = None

    @property
    def parts(self):
        '''The tuple of integers written to the cell.'''
        if self._parts is None:
            raise RuntimeError(f'{self.kind.name.lower()} storage read while not written')
        return self._parts

    @property
    def value(self):
        '''The integer of an INTEGER cell, or the (numerator, denominator) pair of a RATIONAL
        cell.'''
        parts = self.parts
        return parts[0] if self.kind == Kind.INTEGER else parts

    def is_written(self):
        return self._parts is not None

    def _write(self, parts):
        self.alloc = max(self.alloc, *(limbs_needed(part) for part in parts))
        self._parts = parts

    def _release(self):
        self._parts = None

    def __repr__(self):
        state = repr(self._parts) if self._parts is not None else 'released'
        return f'<Storage {self.kind.name} alloc={self.alloc} {state}>'


class Slot:
    '''A checked-out storage cell whose contents are undefined.  The only thing that can be
    done with a slot is write a value to it, which turns it into a readable Storage.'''

    __slots__ = ('_storage', )

    def __init__(self, storage):
        self._storage = storage

    @property
    def kind(self):
        return self._storage.kind

    def write(self, *parts):
        '''Initialize the cell with parts and return it as a Storage.  A slot can be written
        only once.'''
        storage = self._storage
        if storage is None:
            raise RuntimeError('slot already written')
        if len(parts) != _PART_COUNTS[storage.kind]:
            raise TypeError(f'{storage.kind.name.lower()} storage holds '
                            f'{_PART_COUNTS[storage.kind]} integer(s)')
        if not all(isinstance(part, int) for part in parts):
            raise TypeError('storage parts must be integers')
        self._storage = None
        storage._write(tuple(int(part) for part in parts))
        return storage


class ValueCache:
    '''Bounded free lists of storage cells, one per cacheable kind.

    cache_size bounds the length of each free list.  Cells with more than
    max_cached_limbs limbs allocated are freed rather than cached so that a few huge
    values do not pin their memory.
    '''

    __slots__ = ('cache_size', 'max_cached_limbs', '_free')

    def __init__(self, cache_size=DEFAULT_CACHE_SIZE, max_cached_limbs=DEFAULT_CACHE_LIMBS):
        self._check_limits(cache_size, max_cached_limbs)
        self.cache_size = cache_size
        self.max_cached_limbs = max_cached_limbs
        self._free = {kind: [] for kind in _PART_COUNTS}

    @staticmethod
    def _check_limits(cache_size, max_cached_limbs):
        if not all(isinstance(n, int) for n in (cache_size, max_cached_limbs)):
            raise TypeError('cache size and object size must be integers')
        if not 0 <= cache_size <= MAX_CACHE:
            raise ValueError(f'cache size must be between 0 and {MAX_CACHE}')
        if not 0 <= max_cached_limbs <= MAX_CACHE_LIMBS:
            raise ValueError(f'object size must be between 0 and {MAX_CACHE_LIMBS}')

    def _free_list(self, kind):
        try:
            return self._free[kind]
        except KeyError:
            raise ValueError(f'values of kind {kind!r} are not cached') from None

    def checkout(self, kind):
        '''Return a Slot for a storage cell of the given kind, recycled if possible.'''
        free = self._free_list(kind)
        return Slot(free.pop() if free else Storage(kind))

    def checkin(self, kind, storage):
        '''Offer storage back to the cache.  Return True if it was kept for reuse.  Its value
        is not cleared; it is released and cannot be read until written again.'''
        if storage.kind != kind:
            raise ValueError(f'cannot check {storage.kind.name} storage in as {kind.name}')
        free = self._free_list(kind)
        storage._release()
        if len(free) >= self.cache_size or storage.alloc > self.max_cached_limbs:
            return False
        free.append(storage)
        return True

    def count(self, kind):
        '''Return the number of cells of the kind in the free list.'''
        return len(self._free_list(kind))

    def set_limits(self, cache_size, max_cached_limbs):
        '''Set the limits, trimming free lists that are now too long or hold cells that are now
        too big.'''
        self._check_limits(cache_size, max_cached_limbs)
        logger.debug('cache limits (%d, %d) -> (%d, %d)', self.cache_size,
                     self.max_cached_limbs, cache_size, max_cached_limbs)
        self.cache_size = cache_size
        self.max_cached_limbs = max_cached_limbs
        for kind, free in self._free.items():
            kept = [storage for storage in free
                    if storage.alloc <= max_cached_limbs][:cache_size]
            if len(kept) != len(free):
                logger.debug('trimmed %s free list from %d to %d', kind.name, len(free),
                             len(kept))
            free[:] = kept

    def __repr__(self):
        counts = ', '.join(f'{kind.name}={len(free)}' for kind, free in self._free.items())
        return (f'<ValueCache cache_size={self.cache_size} '
                f'max_cached_limbs={self.max_cached_limbs} {counts}>')


tls = threading.local()


def get_value_cache():
    '''Return the current thread's value cache, creating it on first use.'''
    try:
        return tls.cache
    except AttributeError:
        tls.cache = ValueCache()
        return tls.cache


def get_cache():
    '''Return the pair (cache_size, max_cached_limbs) of the current thread's cache.'''
    cache = get_value_cache()
    return cache.cache_size, cache.max_cached_limbs


def set_cache(cache_size, max_cached_limbs):
    '''Set the number of cells cached per kind and the largest cell, in limbs, cached.'''
    get_value_cache().set_limits(cache_size, max_cached_limbs)


def acquire(kind, *parts):
    '''Check out a cell of the kind and write parts to it.'''
    return get_value_cache().checkout(kind).write(*parts)


def release(kind, storage):
    '''Check storage back in to the current thread's cache.'''
    return get_value_cache().checkin(kind, storage)
