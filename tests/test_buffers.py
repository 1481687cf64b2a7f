"""Tests for generation buffers and the changed-flag reduction."""

import threading

import numpy as np
import pytest
from Relaxation import AtomicFlag, GenerationArena


class TestGenerationArena:
    """Tests for the two-slot buffer arena."""

    def test_initial_copied(self):
        """Arena owns its buffers; the caller's array is not aliased."""
        initial = np.arange(9, dtype=np.float64)
        arena = GenerationArena(initial)
        initial[:] = -1.0

        assert np.array_equal(arena.current, np.arange(9))

    def test_current_is_read_only(self):
        arena = GenerationArena(np.zeros(4))
        with pytest.raises(ValueError):
            arena.current[0] = 1.0

    def test_next_is_writable_and_distinct(self):
        arena = GenerationArena(np.zeros(4))
        arena.next[:] = 5.0

        assert np.all(arena.current == 0.0)
        assert not np.shares_memory(arena.current, arena.next)

    def test_swap_promotes_next(self):
        arena = GenerationArena(np.zeros(4))
        arena.next[:] = 2.0
        arena.swap()

        assert np.all(arena.current == 2.0)
        assert arena.generation == 1

    def test_swap_reuses_old_current(self):
        """Two slots only: the retired generation becomes the next scratch."""
        arena = GenerationArena(np.zeros(4))
        first = arena.current
        arena.next[:] = 1.0
        arena.swap()

        assert np.shares_memory(arena.next, first)

    def test_snapshot_is_independent(self):
        arena = GenerationArena(np.ones(4))
        snap = arena.snapshot()
        arena.next[:] = 0.0
        arena.swap()

        assert np.all(snap == 1.0)
        assert snap.flags.writeable

    def test_2d_input_flattened(self):
        arena = GenerationArena(np.ones((3, 3)))
        assert arena.current.shape == (9,)
        assert arena.size == 9


class TestAtomicFlag:
    """Tests for the shared OR-accumulating flag."""

    def test_default_false(self):
        assert not AtomicFlag().value

    def test_accumulate_is_or(self):
        flag = AtomicFlag()
        assert flag.accumulate(False) is False
        assert flag.accumulate(True) is True
        assert flag.accumulate(False) is True
        assert bool(flag)

    def test_reset(self):
        flag = AtomicFlag(True)
        flag.reset()
        assert flag.value is False

    def test_concurrent_writers(self):
        """Any single True among many concurrent writers survives."""
        flag = AtomicFlag()
        barrier = threading.Barrier(16)

        def worker(i):
            barrier.wait()
            for _ in range(200):
                flag.accumulate(i == 7)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert flag.value is True
