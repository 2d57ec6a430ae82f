import random
import threading

import pytest

from dixon.errors import RelationExhaustionError
from dixon.relations import (
    FactorBase,
    Relation,
    RelationCollector,
    RelationSet,
    build_factor_base,
    optimal_bound,
    smooth_exponents,
)


def test_optimal_bound():
    assert optimal_bound(13195) == 102
    assert optimal_bound(4) == 2
    assert optimal_bound(2) == 1


def test_build_factor_base():
    fb = build_factor_base(13195)
    assert fb.bound == 102
    assert len(fb) == 26
    assert fb.primes[0] == 2 and fb.primes[-1] == 101
    assert build_factor_base(4).primes == (2,)
    assert build_factor_base(91, bound=1).primes == ()


def test_smooth_exponents():
    fb = build_factor_base(91, bound=7)
    assert smooth_exponents(10, 91, fb) == (0, 2, 0, 0)
    assert smooth_exponents(11, 91, fb) == (1, 1, 1, 0)
    assert smooth_exponents(12, 91, fb) is None
    assert smooth_exponents(90, 91, fb) == (0, 0, 0, 0)


def test_zero_square_is_not_smooth():
    fb = build_factor_base(49, bound=7)
    assert smooth_exponents(7, 49, fb) is None


def test_empty_factor_base_is_never_smooth():
    fb = build_factor_base(91, bound=1)
    assert smooth_exponents(11, 91, fb) is None


def test_reconstruction():
    n = 13195
    fb = build_factor_base(n)
    smooth = 0
    for z in range(115, n):
        exponents = smooth_exponents(z, n, fb)
        if exponents is not None:
            smooth += 1
            assert len(exponents) == len(fb)
            assert fb.product(exponents) == z * z % n
    assert smooth > 0


def test_reconstruction_beyond_int64():
    n = 2 ** 71 + 1
    fb = build_factor_base(n, bound=3)
    assert smooth_exponents(2 ** 35, n, fb) == (70, 0)

    n = 10 ** 30 + 57
    fb = build_factor_base(n, bound=1000)
    rng = random.Random(8)
    for _ in range(200):
        z = rng.randrange(10 ** 15, n)
        exponents = smooth_exponents(z, n, fb)
        if exponents is not None:
            assert fb.product(exponents) == z * z % n


def test_debug_hook_sees_every_division():
    fb = build_factor_base(91, bound=7)
    steps = []
    smooth_exponents(11, 91, fb, on_step=lambda e, t, p: steps.append((e, t, p)))
    assert steps == [
        ((0, 0, 1, 0), 6, 5),
        ((0, 1, 1, 0), 2, 3),
        ((1, 1, 1, 0), 1, 2),
    ]


def test_relation_parity():
    relation = Relation(11, (3, 2, 1, 0))
    assert relation.parity == (1, 0, 1, 0)
    assert not relation.is_square
    assert Relation(10, (0, 2, 0, 0)).is_square
    assert relation.value(FactorBase(7, (2, 3, 5, 7))) == 8 * 9 * 5


def test_relation_set_fills_up():
    relations = RelationSet(3)
    assert relations.offer(Relation(4, (1, 0)))
    assert not relations.offer(Relation(4, (1, 0)))
    assert relations.offer(Relation(5, (0, 1)))
    assert not relations.closed
    assert relations.offer(Relation(6, (1, 1)))
    assert relations.closed and relations.complete and not relations.is_square
    assert not relations.offer(Relation(7, (1, 0)))
    assert [r.z for r in relations.relations] == [4, 5, 6]


def test_square_relation_wins():
    relations = RelationSet(3)
    relations.offer(Relation(4, (1, 0)))
    assert relations.offer(Relation(9, (2, 0)))
    assert relations.is_square and relations.closed
    assert [r.z for r in relations.relations] == [9]
    assert not relations.offer(Relation(8, (0, 2)))


def check_relation_set(relations, n, fb):
    members = relations.relations
    assert relations.complete
    if relations.is_square:
        assert len(members) == 1 and members[0].is_square
    else:
        assert len(members) == len(fb) + 1
    assert len({r.z for r in members}) == len(members)
    for r in members:
        assert 115 <= r.z < n
        assert r.value(fb) == r.z * r.z % n


def test_collect():
    n = 13195
    fb = build_factor_base(n)
    relations = RelationCollector(rng=random.Random(1)).collect(n, fb)
    check_relation_set(relations, n, fb)


def test_collect_is_reproducible():
    n = 13195
    fb = build_factor_base(n)
    first = RelationCollector(rng=random.Random(4)).collect(n, fb)
    second = RelationCollector(rng=random.Random(4)).collect(n, fb)
    assert first.relations == second.relations


def test_collect_with_workers():
    n = 13195
    fb = build_factor_base(n)
    relations = RelationCollector(workers=4, rng=random.Random(2)).collect(n, fb)
    check_relation_set(relations, n, fb)


def test_collect_exhaustion():
    fb = build_factor_base(1000003, bound=2)
    collector = RelationCollector(max_attempts=5, rng=random.Random(1))
    with pytest.raises(RelationExhaustionError) as excinfo:
        collector.collect(1000003, fb)
    assert excinfo.value.attempts == 5


def test_collect_exhaustion_with_workers():
    fb = build_factor_base(1000003, bound=2)
    collector = RelationCollector(max_attempts=20, workers=3, rng=random.Random(1))
    with pytest.raises(RelationExhaustionError):
        collector.collect(1000003, fb)


def test_collector_rejects_bad_settings():
    with pytest.raises(ValueError):
        RelationCollector(max_attempts=0)
    with pytest.raises(ValueError):
        RelationCollector(workers=0)


def offer_all_at_once(relation_set, relations):
    barrier = threading.Barrier(len(relations))
    results = [None] * len(relations)

    def worker(i):
        barrier.wait()
        results[i] = relation_set.offer(relations[i])

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(len(relations))]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results


def test_concurrent_square_relations_have_one_winner():
    for _ in range(20):
        relations = RelationSet(3)
        results = offer_all_at_once(relations, [Relation(z, (2, 0)) for z in range(10, 18)])
        assert results.count(True) == 1
        assert relations.is_square and relations.closed
        assert len(relations) == 1
        winner = relations.relations[0]
        assert winner.z == 10 + results.index(True)


def test_concurrent_offers_stop_at_target():
    for _ in range(20):
        relations = RelationSet(3)
        results = offer_all_at_once(relations, [Relation(z, (1, 0)) for z in range(10, 22)])
        assert results.count(True) == 3
        assert relations.closed and not relations.is_square
        assert len(relations) == 3
        assert len({r.z for r in relations.relations}) == 3


def test_parity_rows_follow_insertion_order():
    relations = RelationSet(4)
    relations.offer(Relation(5, (3, 0, 1)))
    relations.offer(Relation(4, (1, 2, 2)))
    assert relations.parity_rows() == [(1, 0, 1), (1, 0, 0)]
