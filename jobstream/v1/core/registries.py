from typing import Generic, Protocol, TypeVar

# Base registry implementation
T = TypeVar("T")


class Registry(Generic[T]):
    """Generic registry for pluggable implementations."""

    def __init__(self, name: str):
        self.name = name
        self._implementations: dict[str, T] = {}
        self._frozen = False

    def register(self, name: str, implementation: T) -> None:
        """Register an implementation with a given name."""
        if self._frozen:
            raise RuntimeError(
                f"Cannot register '{name}' in {self.name.lower()} registry: "
                "registry is frozen in production mode"
            )
        self._implementations[name] = implementation

    def get(self, name: str) -> T:
        """Get an implementation by name."""
        if name not in self._implementations:
            raise KeyError(
                f"No {self.name.lower()} implementation registered with name: {name}"
            )
        return self._implementations[name]

    def list(self) -> list[str]:
        """List all registered implementation names."""
        return list(self._implementations.keys())

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        """Check if the registry is frozen."""
        return self._frozen


# Transform Registry - pure string transforms applied to job input
class StringTransform(Protocol):
    """Protocol for deterministic job transforms."""

    def __call__(self, text: str) -> str:
        """
        Transform job input into the result streamed back unit by unit.

        Must be pure and deterministic. Raises ValueError for empty input.
        """
        ...


class TransformRegistry(Registry[StringTransform]):
    """Registry for job transforms (frequency_base64, ...)."""

    def __init__(self):
        super().__init__("Transform")


# Global registry instances (singletons)
transform_registry = TransformRegistry()
