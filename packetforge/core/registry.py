"""
Protocol registry and binding graph.

The registry maps protocol names to header classes and records directed
bindings ``predecessor -> successor``. A binding holds conditions on
discriminator fields of the predecessor (a literal value or a predicate on
the field value) and an optional condition on the payload length seen by the
predecessor. Bindings from one predecessor to different successors must be
mutually exclusive; an overlap is rejected when the binding is registered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from packetforge.core.header import Header, Layer
from packetforge.errors import BindingError

if TYPE_CHECKING:
    from packetforge.fields.base import Fieldable

# Predicates on fields wider than this cannot be compared for overlap
_MAX_ENUM_BITS = 16
_PAYLOAD_LENGTH_BITS = 16


@dataclass(frozen=True)
class Binding:
    """
    A directed edge of the binding graph.

    Attributes:
        predecessor: Outer header class
        successor: Inner header class
        conditions: (field name, literal or predicate) pairs on the predecessor
        payload_length: Literal or predicate on the predecessor payload length
    """
    predecessor: type[Header]
    successor: type[Header]
    conditions: tuple[tuple[str, Any], ...] = ()
    payload_length: Any = None

    def matches(self, header: Header, payload_length: int | None = None) -> bool:
        """Return True if ``header`` (with that payload length) selects the successor."""
        for name, cond in self.conditions:
            value = getattr(header, name)
            if not (cond(value) if callable(cond) else value == cond):
                return False
        if self.payload_length is not None and payload_length is not None:
            cond = self.payload_length
            if not (cond(payload_length) if callable(cond) else payload_length == cond):
                return False
        return True

    def defaults(self) -> dict[str, Any]:
        """Literal conditions, used to populate discriminators on composition."""
        return {name: cond for name, cond in self.conditions if not callable(cond)}

    def describe(self) -> str:
        parts = [f"{name}={'<predicate>' if callable(cond) else cond!r}" for name, cond in self.conditions]
        if self.payload_length is not None:
            parts.append(f"payload_length={'<predicate>' if callable(self.payload_length) else self.payload_length!r}")
        return ', '.join(parts)


def _accepted(cond: Any, nbits: int | None) -> frozenset | None:
    """Values accepted by a condition, or None if they cannot be enumerated."""
    if not callable(cond):
        return frozenset([cond])
    if nbits is None or nbits > _MAX_ENUM_BITS:
        return None
    return frozenset(v for v in range(1 << nbits) if cond(v))


def _disjoint(a: Any, b: Any, nbits: int | None) -> bool:
    """True if conditions ``a`` and ``b`` provably never accept the same value."""
    if not callable(a) and not callable(b):
        return a != b
    if not callable(a):
        return not b(a)
    if not callable(b):
        return not a(b)
    accepted_a = _accepted(a, nbits)
    accepted_b = _accepted(b, nbits)
    if accepted_a is None or accepted_b is None:
        return False
    return not (accepted_a & accepted_b)


def _field_bits(header_cls: type[Header], name: str) -> int | None:
    schema = header_cls._schema
    if name in schema.bits:
        return schema.bits[name].width
    ftype: Fieldable = schema.types[name]
    return getattr(ftype, 'nbits', None)


class ProtocolRegistry:
    """
    Registry of header classes and of the bindings between them.

    It is populated at import time of the protocol modules, optionally
    frozen, and read-only while packets are dissected or composed.
    """

    def __init__(self):
        self._headers: dict[str, type[Header]] = {}
        self._by_layer: dict[int, list[str]] = {}
        self._bindings: dict[type[Header], list[Binding]] = {}
        self._frozen = False

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("Registry is frozen")

    def register(self, header_cls: type[Header]) -> type[Header]:
        """Register a header class under its protocol name."""
        self._check_mutable()
        if not header_cls.protocol_name:
            raise ValueError(f"Header {header_cls.__name__} must have a protocol name")
        name = header_cls.protocol_name
        if name in self._headers:
            raise ValueError(f"Protocol {name} already registered")
        self._headers[name] = header_cls
        self._by_layer.setdefault(header_cls.layer.value, []).append(name)
        return header_cls

    def get(self, name: str) -> type[Header] | None:
        """Get header class by protocol name or by method name (``ipv6_hopbyhop``)."""
        header_cls = self._headers.get(name)
        if header_cls:
            return header_cls
        for cls in self._headers.values():
            if cls.method_name() == name:
                return cls
        return None

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def get_by_layer(self, layer: Layer) -> list[type[Header]]:
        """Get all header classes of a layer."""
        return [self._headers[name] for name in self._by_layer.get(layer.value, [])]

    def list_headers(self) -> list[str]:
        """List all registered protocol names."""
        return list(self._headers.keys())

    def bind(self, predecessor: type[Header], successor: type[Header],
             payload_length: Any = None, **conditions: Any) -> Binding:
        """
        Record that ``successor`` follows ``predecessor`` when ``conditions`` hold.

        Args:
            predecessor: Outer header class
            successor: Inner header class
            payload_length: Literal or predicate on the payload length
            **conditions: Field of ``predecessor`` -> literal value (names are
                accepted for enumerations) or predicate on the field value

        Returns:
            The new binding

        Raises:
            ValueError: If a condition names an unknown field
            BindingError: If the binding overlaps an existing binding from
                ``predecessor`` to another successor
        """
        self._check_mutable()
        if not conditions and payload_length is None:
            raise ValueError("A binding needs at least one condition")

        schema = predecessor._schema
        normalized = []
        for name, cond in conditions.items():
            if name not in schema:
                raise ValueError(f"{predecessor.protocol_name} has no field {name!r}")
            if not callable(cond) and name in schema.types:
                cond = schema.types[name].coerce(cond)
            normalized.append((name, cond))
        binding = Binding(predecessor, successor, tuple(normalized), payload_length)

        for other in self._bindings.get(predecessor, []):
            if other.successor is successor:
                continue
            if not self._exclusive(binding, other):
                raise BindingError(
                    predecessor, successor,
                    f"binding {predecessor.protocol_name} -> {successor.protocol_name} "
                    f"({binding.describe()}) overlaps binding to "
                    f"{other.successor.protocol_name} ({other.describe()})",
                    hint="make the conditions mutually exclusive")

        self._bindings.setdefault(predecessor, []).append(binding)
        return binding

    @staticmethod
    def _exclusive(a: Binding, b: Binding) -> bool:
        cond_a = dict(a.conditions)
        cond_b = dict(b.conditions)
        for name in cond_a.keys() & cond_b.keys():
            if _disjoint(cond_a[name], cond_b[name], _field_bits(a.predecessor, name)):
                return True
        if a.payload_length is not None and b.payload_length is not None:
            if _disjoint(a.payload_length, b.payload_length, _PAYLOAD_LENGTH_BITS):
                return True
        return False

    def bindings_from(self, predecessor: type[Header]) -> list[Binding]:
        return list(self._bindings.get(predecessor, []))

    def bindings_between(self, predecessor: type[Header], successor: type[Header]) -> list[Binding]:
        return [b for b in self._bindings.get(predecessor, []) if b.successor is successor]

    def resolve(self, header: Header, payload_length: int | None = None) -> type[Header] | None:
        """Successor class selected by a decoded header, or None."""
        for binding in self._bindings.get(type(header), []):
            if binding.matches(header, payload_length):
                return binding.successor
        return None

    def freeze(self) -> None:
        """Forbid further registrations and bindings."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen


# Global registry instance
_global_registry = ProtocolRegistry()


def get_global_registry() -> ProtocolRegistry:
    """Get the global protocol registry."""
    return _global_registry


def register_header(
    name: str | None = None,
    layer: Layer | None = None,
    registry: ProtocolRegistry | None = None
) -> Callable[[type[Header]], type[Header]]:
    """
    Decorator to register a header class.

    Args:
        name: Protocol name (defaults to the class protocol_name)
        layer: Protocol layer
        registry: Registry to use (defaults to global)

    Example:
        @register_header('IPv6::HopByHop', Layer.NETWORK)
        class HopByHop(Header):
            fields = (...)
    """
    if registry is None:
        registry = _global_registry

    def decorator(cls: type[Header]) -> type[Header]:
        if name is not None:
            cls.protocol_name = name
        if layer is not None:
            cls.layer = layer
        return registry.register(cls)

    return decorator


def bind_header(predecessor: type[Header], successor: type[Header],
                registry: ProtocolRegistry | None = None, **conditions: Any) -> Binding:
    """Bind two header classes in a registry (defaults to global)."""
    if registry is None:
        registry = _global_registry
    return registry.bind(predecessor, successor, **conditions)
