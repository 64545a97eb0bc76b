import threading

import pytest

from mptower import *
from mptower.cache import *
from mptower.cache import LIMB_BITS, MAX_CACHE, limbs_needed


class TestStorage:

    def test_checkout_write(self):
        cache = ValueCache()
        slot = cache.checkout(Kind.INTEGER)
        assert isinstance(slot, Slot)
        assert slot.kind == Kind.INTEGER
        storage = slot.write(5)
        assert isinstance(storage, Storage)
        assert storage.value == 5
        assert storage.is_written()

    def test_slot_written_once(self):
        slot = ValueCache().checkout(Kind.INTEGER)
        slot.write(5)
        with pytest.raises(RuntimeError):
            slot.write(6)

    def test_rational_storage(self):
        storage = ValueCache().checkout(Kind.RATIONAL).write(-3, 4)
        assert storage.value == (-3, 4)
        assert storage.parts == (-3, 4)

    @pytest.mark.parametrize('kind, parts', (
        (Kind.INTEGER, (1, 2)),
        (Kind.INTEGER, ()),
        (Kind.RATIONAL, (1, )),
        (Kind.INTEGER, (1.5, )),
        (Kind.RATIONAL, (1, '2')),
    ))
    def test_write_bad_parts(self, kind, parts):
        with pytest.raises(TypeError):
            ValueCache().checkout(kind).write(*parts)

    def test_read_released(self):
        cache = ValueCache()
        storage = cache.checkout(Kind.RATIONAL).write(1, 2)
        assert cache.checkin(Kind.RATIONAL, storage)
        assert not storage.is_written()
        with pytest.raises(RuntimeError):
            storage.value

    def test_recycled(self):
        cache = ValueCache()
        storage = cache.checkout(Kind.INTEGER).write(12)
        cache.checkin(Kind.INTEGER, storage)
        assert cache.count(Kind.INTEGER) == 1
        assert cache.checkout(Kind.INTEGER).write(7) is storage
        assert storage.value == 7
        assert cache.count(Kind.INTEGER) == 0

    def test_alloc_never_shrinks(self):
        cache = ValueCache()
        big = 1 << 1000
        storage = cache.checkout(Kind.INTEGER).write(big)
        alloc = storage.alloc
        assert alloc == limbs_needed(big) == 1001 // LIMB_BITS + 1
        assert cache.checkin(Kind.INTEGER, storage)
        assert cache.checkout(Kind.INTEGER).write(1) is storage
        assert storage.alloc == alloc

    def test_limbs_needed(self):
        assert limbs_needed(0) == 1
        assert limbs_needed(-1) == 1
        assert limbs_needed(1 << LIMB_BITS) == 2
        assert limbs_needed(-(1 << LIMB_BITS) + 1) == 1


class TestValueCache:

    @pytest.mark.parametrize('extra', (1, 5, 50))
    def test_checkin_bound(self, extra):
        cache = ValueCache(cache_size=10)
        storages = [Storage(Kind.INTEGER) for _ in range(10 + extra)]
        kept = [cache.checkin(Kind.INTEGER, storage) for storage in storages]
        assert kept == [True] * 10 + [False] * extra
        assert cache.count(Kind.INTEGER) == 10
        assert cache.count(Kind.RATIONAL) == 0

    def test_large_not_cached(self):
        cache = ValueCache(cache_size=10, max_cached_limbs=1)
        storage = cache.checkout(Kind.INTEGER).write(1 << 200)
        assert not cache.checkin(Kind.INTEGER, storage)
        assert cache.count(Kind.INTEGER) == 0
        # Released all the same
        with pytest.raises(RuntimeError):
            storage.value

    def test_zero_size(self):
        cache = ValueCache(cache_size=0)
        storage = cache.checkout(Kind.RATIONAL).write(1, 3)
        assert not cache.checkin(Kind.RATIONAL, storage)

    def test_kind_mismatch(self):
        cache = ValueCache()
        storage = cache.checkout(Kind.INTEGER).write(1)
        with pytest.raises(ValueError):
            cache.checkin(Kind.RATIONAL, storage)

    @pytest.mark.parametrize('kind', (Kind.FLOAT, Kind.COMPLEX))
    def test_uncached_kinds(self, kind):
        with pytest.raises(ValueError):
            ValueCache().checkout(kind)

    def test_set_limits_trims(self):
        cache = ValueCache()
        storages = [cache.checkout(Kind.INTEGER).write(n << (n * 100)) for n in range(10)]
        for storage in storages:
            cache.checkin(Kind.INTEGER, storage)
        assert cache.count(Kind.INTEGER) == 10
        cache.set_limits(8, 128)
        assert cache.count(Kind.INTEGER) == 8
        # Only the smallest values fit in 4 limbs
        cache.set_limits(8, 4)
        assert 0 < cache.count(Kind.INTEGER) < 8
        cache.set_limits(0, 4)
        assert cache.count(Kind.INTEGER) == 0

    @pytest.mark.parametrize('cache_size, max_cached_limbs', (
        (-1, 10), (MAX_CACHE + 1, 10), (10, -1), (10, 16385),
    ))
    def test_set_limits_bad(self, cache_size, max_cached_limbs):
        with pytest.raises(ValueError):
            ValueCache(cache_size, max_cached_limbs)
        with pytest.raises(ValueError):
            ValueCache().set_limits(cache_size, max_cached_limbs)

    def test_set_limits_type(self):
        with pytest.raises(TypeError):
            ValueCache().set_limits('10', 10)


class TestThreadCache:

    def test_get_set_cache(self):
        saved = get_cache()
        try:
            set_cache(5, 64)
            assert get_cache() == (5, 64)
            with pytest.raises(ValueError):
                set_cache(1001, 64)
            assert get_cache() == (5, 64)
        finally:
            set_cache(*saved)

    def test_thread_local(self):
        cache = get_value_cache()
        assert get_value_cache() is cache
        caches = []
        thread = threading.Thread(target=lambda: caches.append(get_value_cache()))
        thread.start()
        thread.join()
        assert caches[0] is not cache

    def test_acquire_release(self):
        storage = acquire(Kind.RATIONAL, 2, 3)
        assert storage.value == (2, 3)
        release(Kind.RATIONAL, storage)
        assert not storage.is_written()

    def test_boxed_values_recycled(self):
        cache = get_value_cache()
        saved = get_cache()
        try:
            set_cache(MAX_CACHE, 128)
            value = Integer(12345)
            count = cache.count(Kind.INTEGER)
            del value
            assert cache.count(Kind.INTEGER) == count + 1
            value = Rational(3, 7)
            count = cache.count(Kind.RATIONAL)
            del value
            assert cache.count(Kind.RATIONAL) == count + 1
        finally:
            set_cache(*saved)
