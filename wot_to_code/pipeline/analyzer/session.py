"""
Per-run state of a generation pass.

A GenerationSession owns the registries and every descriptor produced
during one run; it is created by the orchestrator and handed to each
component by reference, so two runs never share mutable state.
"""

from __future__ import annotations

import logging

from ..config import GeneratorConfig
from .enum_strategies import WrapperTypePolicy, create_wrapper_policy
from .ir_nodes import ActionInterface, CategoryMarker, ClassDescriptor, GenerationResult, TypeAlias, TypeRef
from .name_resolver import unique_name
from .registry import ClassRegistry, EnumRegistry

logger = logging.getLogger(__name__)


class GenerationSession:
    """Registries and collected output of one generation run."""

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self.class_registry = ClassRegistry()
        self.enum_registry = EnumRegistry()
        self.wrapper_policy: WrapperTypePolicy = create_wrapper_policy(config.enum_placement, self.enum_registry)
        self._aliases: dict[tuple[str, str], TypeAlias] = {}
        # (package, requested name) -> aliases registered for it, suffixed or not
        self._aliases_by_request: dict[tuple[str, str], list[TypeAlias]] = {}
        self.interfaces: list[ActionInterface] = []
        self.markers: dict[tuple[str, str], CategoryMarker] = {}

    def reserve_class(self, package: str, name: str) -> None:
        """Claim the name of an orchestrator-built container class before resolution starts."""
        self.class_registry.register(package, name, f"container:{package}.{name}")

    def add_container(self, descriptor: ClassDescriptor) -> TypeRef:
        """Add a container class whose name was reserved with reserve_class."""
        descriptor.fingerprint = f"container:{descriptor.package}.{descriptor.name}"
        self.class_registry.add(descriptor)
        return descriptor.type_ref

    def add_alias(self, package: str, name: str, target: TypeRef) -> TypeRef:
        """
        Add a type alias, reusing one requested under the same name for the same target.

        A same-named alias for a different target, or a name already taken by a
        class, gets a numeric suffix.
        """
        variants = self._aliases_by_request.setdefault((package, name), [])
        for existing in variants:
            if existing.target == target:
                return existing.type_ref

        taken = {alias_name for pkg, alias_name in self._aliases if pkg == package}
        taken |= self.class_registry.names_in(package)
        final_name = unique_name(name, taken)
        if final_name != name:
            logger.warning(f"Type alias name conflict for '{name}' in package '{package}'. Using new name '{final_name}'")

        alias = TypeAlias(package=package, name=final_name, target=target)
        self._aliases[(package, final_name)] = alias
        variants.append(alias)
        logger.debug(f"Registered type alias {package}.{final_name}")
        return alias.type_ref

    def add_marker(self, marker: CategoryMarker) -> TypeRef:
        self.markers.setdefault((marker.package, marker.name), marker)
        return marker.type_ref

    @property
    def aliases(self) -> list[TypeAlias]:
        return list(self._aliases.values())

    def build_result(self, model_name: str, root_package: str, model_url: str) -> GenerationResult:
        """Collect everything generated so far."""
        return GenerationResult(
            model_name=model_name,
            root_package=root_package,
            model_url=model_url,
            classes=self.class_registry.classes,
            enums=self.enum_registry.separate_enums,
            aliases=self.aliases,
            interfaces=list(self.interfaces),
            markers=list(self.markers.values()),
            inline_enums=self.enum_registry.inline_enums,
        )
