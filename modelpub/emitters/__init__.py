"""Format emitter plugins and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set

from .archives import ArchiveEmitter, GoEmitter, JavaEmitter, XmlSchemaEmitter
from .base import DEFAULT_DIAGRAM_SERVER, EmitResult, Emitter, EmitterSettings
from .diagram import PlantUMLEmitter
from .sources import JSONSchemaEmitter, TypescriptEmitter

_ENTRY_POINT_GROUP = "modelpub.emitters"

_BUILTIN_FACTORIES: dict[str, Callable[[EmitterSettings], Emitter]] = {
    "plantuml": PlantUMLEmitter,
    "typescript": lambda settings: TypescriptEmitter(),
    "xmlschema": lambda settings: XmlSchemaEmitter(),
    "jsonschema": lambda settings: JSONSchemaEmitter(),
    "java": lambda settings: JavaEmitter(),
    "go": lambda settings: GoEmitter(),
}


def builtin_formats() -> List[str]:
    return list(_BUILTIN_FACTORIES)


def discover_emitters(
    enabled: Sequence[str] | None = None,
    settings: EmitterSettings | None = None,
) -> List[Emitter]:
    """Return instantiated emitters in publishing order, honoring optional enabled names."""

    settings = settings or EmitterSettings()
    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    emitters: List[Emitter] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[EmitterSettings], Emitter]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory(settings)
        if not isinstance(instance, Emitter):
            raise TypeError(f"Emitter factory for '{name}' did not return an Emitter instance")
        emitters.append(instance)
        seen.add(key)
        if enabled_set is not None:
            enabled_set.discard(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load emitter entry point '{name}': {exc}") from exc

        def _factory(current: EmitterSettings, obj: object = loaded) -> Emitter:
            return _coerce_emitter(obj)

        _add(name, _factory)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown formats requested: {missing}")

    return emitters


def _coerce_emitter(obj: object) -> Emitter:
    if isinstance(obj, Emitter):
        return obj
    if isinstance(obj, type) and issubclass(obj, Emitter):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Emitter):
            return instance
    raise TypeError("Emitter entry point must be an Emitter subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover - defensive guard
        return []

    if hasattr(entry_points, "select"):
        return entry_points.select(group=_ENTRY_POINT_GROUP)  # type: ignore[return-value]

    return entry_points.get(_ENTRY_POINT_GROUP, [])  # type: ignore[return-value]


__all__ = [
    "ArchiveEmitter",
    "DEFAULT_DIAGRAM_SERVER",
    "EmitResult",
    "Emitter",
    "EmitterSettings",
    "GoEmitter",
    "JSONSchemaEmitter",
    "JavaEmitter",
    "PlantUMLEmitter",
    "TypescriptEmitter",
    "XmlSchemaEmitter",
    "builtin_formats",
    "discover_emitters",
]
