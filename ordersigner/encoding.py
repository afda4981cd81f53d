from eth_utils import keccak

from .registry import TypeRegistry


def dependencies_of(type_name: str, registry: TypeRegistry) -> tuple[str, ...]:
    """Struct types reachable from ``type_name``, the type itself first."""
    registry.fields(type_name)

    found: list[str] = []
    visited: set[str] = set()
    to_visit = [type_name]

    while to_visit:
        current = to_visit.pop()

        if current in visited:
            continue

        visited.add(current)
        found.append(current)
        referenced = [
            field.struct
            for field in registry.fields(current)
            if field.struct is not None
        ]
        to_visit.extend(reversed(referenced))

    return tuple(found)


def encode_member(type_name: str, registry: TypeRegistry) -> str:
    members = ",".join(
        f"{field.type} {field.name}" for field in registry.fields(type_name)
    )
    return f"{type_name}({members})"


def encode_type(type_name: str, registry: TypeRegistry) -> str:
    primary, *dependencies = dependencies_of(type_name, registry)
    return "".join(
        encode_member(name, registry) for name in [primary, *sorted(dependencies)]
    )


def type_hash(type_name: str, registry: TypeRegistry) -> bytes:
    return keccak(text=encode_type(type_name, registry))
