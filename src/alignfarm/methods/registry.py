"""Registry mapping method names to mapping method instances."""

from alignfarm.errors.exceptions import MethodNotFoundError
from alignfarm.methods.base import MappingMethod


def _build_methods() -> list[MappingMethod]:
    from alignfarm.methods.exonerate import (
        ExonerateGappedBest1,
        ExonerateGappedBest1_55_perc_id,
        ExonerateGappedBest5,
        ExonerateUngappedBest1,
    )

    return [
        ExonerateGappedBest1(),
        ExonerateGappedBest1_55_perc_id(),
        ExonerateGappedBest5(),
        ExonerateUngappedBest1(),
    ]


class MethodRegistry:
    """Static name -> method lookup, populated once at start-up."""

    def __init__(self, methods: list[MappingMethod] | None = None):
        self._methods: dict[str, MappingMethod] = {}
        for method in methods or []:
            self.register(method)

    def register(self, method: MappingMethod, name: str | None = None) -> None:
        """Register a method instance under its own (or an explicit) name."""
        self._methods[name or method.name] = method

    def resolve(self, name: str) -> MappingMethod:
        """Return the method registered under ``name``.

        Raises:
            MethodNotFoundError: Nothing is registered under that name.
        """
        method = self._methods.get(name)
        if method is None:
            raise MethodNotFoundError(name)
        return method

    def names(self) -> list[str]:
        return sorted(self._methods)

    def __contains__(self, name: str) -> bool:
        return name in self._methods


def default_registry() -> MethodRegistry:
    """Registry holding every built-in alignment method."""
    return MethodRegistry(_build_methods())
