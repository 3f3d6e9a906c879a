import pytest

from mptree.predicates import And
from mptree.predicates import Contains
from mptree.predicates import Eq
from mptree.predicates import In
from mptree.predicates import Ne
from mptree.predicates import Or
from mptree.predicates import Predicate
from mptree.predicates import SizeEq
from mptree.predicates import conjunction

RECORD = {'id': '4', 'ancestors': ['1', '3'], 'name': 'Pista'}


def test_equality_and_not_equal():
    assert Eq('name', 'Pista').matches(RECORD)
    assert not Eq('name', 'Jozef').matches(RECORD)
    assert Ne('id', '5').matches(RECORD)
    assert not Ne('id', '4').matches(RECORD)


def test_membership():
    assert In('id', ['1', '4']).matches(RECORD)
    assert not In('id', []).matches(RECORD)
    assert In('id', iter(['4'])).values == ('4',)


def test_containment_and_size():
    assert Contains('ancestors', '3').matches(RECORD)
    assert not Contains('ancestors', '4').matches(RECORD)
    assert not Contains('children', '1').matches(RECORD)
    assert SizeEq('ancestors', 2).matches(RECORD)
    assert SizeEq('children', 0).matches(RECORD)


def test_composition():
    depth = Or(SizeEq('ancestors', 1), SizeEq('ancestors', 2))
    assert And(depth, Contains('ancestors', '1')).matches(RECORD)
    assert not And(depth, Contains('ancestors', '9')).matches(RECORD)
    assert (Eq('id', '9') | Eq('id', '4')).matches(RECORD)
    assert not (Eq('id', '4') & Eq('name', 'x')).matches(RECORD)
    assert not Or().matches(RECORD)


def test_conjunction_skips_missing_parts():
    assert conjunction(None, None) is None
    assert conjunction(None, Eq('id', '1')) == Eq('id', '1')
    assert conjunction(Eq('id', '1'), Ne('id', '2')) == And(
        Eq('id', '1'), Ne('id', '2')
    )


def test_predicate_base_is_abstract():
    with pytest.raises(TypeError):
        Predicate()
