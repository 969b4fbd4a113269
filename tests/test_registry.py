"""Test the protocol registry and the binding graph."""

import pytest

from packetforge.core.header import Header, Layer
from packetforge.core.registry import Binding, get_global_registry, register_header
from packetforge.errors import BindingError
from packetforge.fields import Field, Int8, Int8Enum, Int16, Int32
from packetforge.protocols import ICMPv6, IPv6, HopByHop, MLD, MLQ, MLR, UDP


# ── Helpers ──

def _headers(registry):
    """Register a small family of headers in ``registry``."""

    @register_header('Outer', Layer.NETWORK, registry=registry)
    class Outer(Header):
        fields = (
            Field('kind', Int8Enum({'first': 1, 'second': 2, 'third': 3})),
            Field('tag', Int32()),
        )

    @register_header('First', Layer.TRANSPORT, registry=registry)
    class First(Header):
        fields = (Field('a', Int16()),)

    @register_header('Second', Layer.TRANSPORT, registry=registry)
    class Second(Header):
        fields = (Field('b', Int8()),)

    return Outer, First, Second


# ── Registration ──

def test_register_and_get(registry):
    Outer, First, _ = _headers(registry)
    assert registry.get('Outer') is Outer
    assert 'First' in registry
    assert registry.get('missing') is None
    assert registry.list_headers() == ['Outer', 'First', 'Second']
    assert registry.get_by_layer(Layer.TRANSPORT)[0] is First


def test_register_duplicate_raises(registry):
    Outer, _, _ = _headers(registry)
    with pytest.raises(ValueError):
        registry.register(Outer)


def test_get_by_method_name():
    """Test lookup through the attribute name used on packets."""
    registry = get_global_registry()
    assert registry.get('ipv6_hopbyhop') is HopByHop
    assert registry.get('mldv2_mlq') is MLQ
    assert HopByHop.method_name() == 'ipv6_hopbyhop'


def test_freeze(registry):
    Outer, First, _ = _headers(registry)
    registry.freeze()
    assert registry.frozen
    with pytest.raises(RuntimeError):
        registry.bind(Outer, First, kind=1)


# ── Binding ──

def test_bind_literal(registry):
    Outer, First, _ = _headers(registry)
    binding = registry.bind(Outer, First, kind='first')
    assert isinstance(binding, Binding)
    assert binding.conditions == (('kind', 1),)
    assert registry.resolve(Outer(kind=1)) is First
    assert registry.resolve(Outer(kind=2)) is None


def test_bind_requires_condition(registry):
    Outer, First, _ = _headers(registry)
    with pytest.raises(ValueError):
        registry.bind(Outer, First)


def test_bind_unknown_field(registry):
    Outer, First, _ = _headers(registry)
    with pytest.raises(ValueError):
        registry.bind(Outer, First, nope=1)


def test_overlapping_literals_rejected(registry):
    """Test that two successors cannot share a discriminator value."""
    Outer, First, Second = _headers(registry)
    registry.bind(Outer, First, kind=1)
    with pytest.raises(BindingError) as exc_info:
        registry.bind(Outer, Second, kind=1)
    assert exc_info.value.predecessor is Outer
    assert exc_info.value.successor is Second
    assert 'overlaps' in str(exc_info.value)


def test_several_bindings_to_same_successor(registry):
    Outer, First, _ = _headers(registry)
    registry.bind(Outer, First, kind=1)
    registry.bind(Outer, First, kind=2)
    assert len(registry.bindings_between(Outer, First)) == 2


def test_overlapping_predicate_rejected(registry):
    Outer, First, Second = _headers(registry)
    registry.bind(Outer, First, kind=1)
    with pytest.raises(BindingError):
        registry.bind(Outer, Second, kind=lambda v: v < 3)


def test_disjoint_predicate_accepted(registry):
    Outer, First, Second = _headers(registry)
    registry.bind(Outer, First, kind=1)
    registry.bind(Outer, Second, kind=lambda v: v >= 2)
    assert registry.resolve(Outer(kind=3)) is Second


def test_wide_predicates_cannot_be_proven_disjoint(registry):
    """Test that predicates on 32-bit fields are treated as overlapping."""
    Outer, First, Second = _headers(registry)
    registry.bind(Outer, First, tag=lambda v: v < 10)
    with pytest.raises(BindingError):
        registry.bind(Outer, Second, tag=lambda v: v > 100)


def test_payload_length_disambiguates(registry):
    Outer, First, Second = _headers(registry)
    registry.bind(Outer, First, kind=1, payload_length=lambda n: n < 4)
    registry.bind(Outer, Second, kind=1, payload_length=lambda n: n >= 4)
    header = Outer(kind=1)
    assert registry.resolve(header, 2) is First
    assert registry.resolve(header, 4) is Second


def test_binding_describe(registry):
    Outer, First, _ = _headers(registry)
    binding = registry.bind(Outer, First, kind=1, payload_length=lambda n: n > 0)
    assert binding.describe() == 'kind=1, payload_length=<predicate>'
    assert binding.defaults() == {'kind': 1}


# ── Built-in graph ──

def test_icmpv6_dispatch_by_type_and_length():
    """Test that MLD and MLDv2 queries share a type and differ by length."""
    registry = get_global_registry()
    query = ICMPv6(type=130)
    assert registry.resolve(query, 20) is MLD
    assert registry.resolve(query, 28) is MLQ
    assert registry.resolve(ICMPv6(type=131), 20) is MLD
    assert registry.resolve(ICMPv6(type=143), 8) is MLR
    assert registry.resolve(ICMPv6(type=128), 8) is None


def test_extension_header_chain():
    registry = get_global_registry()
    assert registry.resolve(IPv6(next=0)) is HopByHop
    assert registry.resolve(HopByHop(next=17)) is UDP
    assert registry.resolve(HopByHop(next=58)) is ICMPv6
