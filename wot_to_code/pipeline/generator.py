"""
Thing Model generator: drives the pipeline once per Thing Model.

Phases:
1. Load the model, merge its tm:extends chain and inline tm:ref markers
2. Parse the inlined JSON into the schema graph
3. Resolve attributes, actions and every tm:submodel feature into the IR
4. Render all modules in memory and validate them
5. Write the modules atomically
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx

from .analyzer.categories import group_by_category
from .analyzer.context import NamingContext, Role
from .analyzer.ir_nodes import (
    ActionInterface,
    CategoryMarker,
    ClassDescriptor,
    ClassKind,
    FieldDef,
    GenerationResult,
    TypeRef,
    primitive,
)
from .analyzer.name_resolver import as_class_name, as_package_name, as_property_name, unique_name
from .analyzer.reference_resolver import ReferenceResolver
from .analyzer.session import GenerationSession
from .analyzer.type_resolver import TypeResolver, deprecation_message
from .backends.python_backend import PythonBackend
from .config import GeneratorConfig
from .errors import MalformedSchemaError, UnsupportedSchemaError
from .loader import ModelLoader, normalize_url, resolve_url
from .schema_ast.nodes import ActionModel, LinkRelation, SchemaNode, ThingModel
from .schema_ast.parser import ThingModelParser
from .writer.atomic_writer import AtomicWriter

logger = logging.getLogger(__name__)

# Thing Model sections whose schemas may hold tm:ref markers and are inherited via tm:extends
MERGED_SECTIONS = ("properties", "actions")


def merge_extended(base: dict[str, Any], document: dict[str, Any]) -> dict[str, Any]:
    """
    Merge an extending Thing Model over the model it extends.

    Properties and actions of the base come first; entries of the extending
    model override same-named ones. Submodel links of the base are kept unless
    the extending model links an instance of the same name.

    Args:
        base: The extended (already merged) model
        document: The extending model

    Returns:
        The merged document
    """
    merged = dict(document)
    for section in MERGED_SECTIONS:
        if section in base or section in document:
            merged[section] = {**(base.get(section) or {}), **(document.get(section) or {})}

    own_links = [link for link in document.get("links") or [] if isinstance(link, dict)]
    own_instances = {link.get("instanceName") for link in own_links if link.get("rel") == LinkRelation.SUBMODEL.value}
    inherited = [
        link
        for link in base.get("links") or []
        if isinstance(link, dict) and link.get("rel") == LinkRelation.SUBMODEL.value and link.get("instanceName") not in own_instances
    ]
    merged["links"] = inherited + [link for link in own_links if link.get("rel") != LinkRelation.EXTENDS.value]
    return merged


class ThingModelGenerator:
    """Generates a Python object model from a Thing Model."""

    def __init__(
        self,
        config: GeneratorConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        command_line: str = "wot_to_code",
    ):
        """
        Initialize the generator.

        Args:
            config: Generator configuration
            transport: Optional httpx transport for model fetches (e.g. httpx.MockTransport)
            command_line: Command line recorded in the generation comment
        """
        self.config = config
        self.transport = transport
        self.command_line = command_line
        self.parser = ThingModelParser()

    def generate(self) -> GenerationResult:
        """Run the generation pass to completion (blocking)."""
        return asyncio.run(self.generate_async())

    async def generate_async(self) -> GenerationResult:
        """
        Run the generation pass.

        Returns:
            The generation result, including the list of written files

        Raises:
            ThingModelGenerationError: On any fatal condition; no file is written then
        """
        self.config.validate()
        logger.info(f"Generating package {self.config.output_package} from {self.config.model_url}")
        session = GenerationSession(self.config)

        async with ModelLoader(timeout=self.config.request_timeout, transport=self.transport) as loader:
            references = ReferenceResolver(loader, strict=self.config.strict_references, max_depth=self.config.max_depth)
            builder = _ModelBuilder(self, session, loader, references)
            result = await builder.build(self.config.model_url)

        backend = PythonBackend(self.config, self._generation_comment())
        modules = backend.render_all(result)
        written = AtomicWriter().write_all(Path(self.config.output_dir), modules)
        result.written_files = [str(path) for path in written]
        return result

    async def load_model(
        self,
        url: str,
        loader: ModelLoader,
        references: ReferenceResolver,
        visited: tuple[str, ...] = (),
    ) -> ThingModel:
        """Load, merge and inline a Thing Model, then parse it."""
        url = normalize_url(url)
        document = await self._load_document(url, loader, references, visited)
        return self.parser.parse(document, url)

    async def _load_document(
        self,
        url: str,
        loader: ModelLoader,
        references: ReferenceResolver,
        visited: tuple[str, ...],
    ) -> dict[str, Any]:
        if url in visited:
            raise UnsupportedSchemaError(f"Cyclic tm:extends chain: {' -> '.join((*visited, url))}")
        if len(visited) >= self.config.max_depth:
            raise UnsupportedSchemaError(f"tm:extends chain exceeds maximum depth {self.config.max_depth} at '{url}'")

        document = await loader.load(url)
        if not isinstance(document, dict):
            raise MalformedSchemaError(url, "Thing Model must be a JSON object")

        for section in MERGED_SECTIONS:
            if document.get(section):
                document[section] = await references.inline(document[section], url)

        extends = [link for link in document.get("links") or [] if isinstance(link, dict) and link.get("rel") == LinkRelation.EXTENDS.value]
        if len(extends) > 1:
            hrefs = ", ".join(str(link.get("href")) for link in extends)
            raise UnsupportedSchemaError(f"Thing Model '{url}' declares {len(extends)} tm:extends links ({hrefs}); only one is allowed")
        if extends:
            base_url = resolve_url(url, extends[0].get("href", ""))
            logger.info(f"Model {url} extends {base_url}")
            base = await self._load_document(base_url, loader, references, (*visited, url))
            document = merge_extended(base, document)

        return document

    def _generation_comment(self) -> str:
        if not self.config.add_generation_comment:
            return ""
        return "\n".join(
            [
                f"# Generated by wot_to_code from {self.config.model_url}",
                f"# Command: {self.command_line}",
                "# Do not edit: changes are overwritten on the next generation.",
            ]
        )


class _ModelBuilder:
    """Resolves one Thing Model and its features into a GenerationResult."""

    def __init__(self, generator: ThingModelGenerator, session: GenerationSession, loader: ModelLoader, references: ReferenceResolver):
        self.generator = generator
        self.session = session
        self.loader = loader
        self.references = references
        self.resolver = TypeResolver(session)
        self.root = session.config.output_package

    async def build(self, model_url: str) -> GenerationResult:
        model = await self.generator.load_model(model_url, self.loader, self.references)
        model_name = as_class_name(model.title)
        features_package = f"{self.root}.features"
        logger.info(f"Generating Thing class {model_name}")

        # Containers claim their names before any schema is resolved
        self.session.reserve_class(f"{self.root}.attributes", "Attributes")
        self.session.reserve_class(features_package, "Features")
        self.session.reserve_class(self.root, model_name)

        attributes_ref = self._build_attributes(model)
        self._build_actions(model.actions, f"{self.root}.actions", model_name)

        feature_fields = []
        taken_packages: set[str] = set()
        taken_properties: set[str] = set()
        for link in model.submodel_links:
            feature_fields.append(await self._build_feature(model, link.href, link.instance_name, taken_packages, taken_properties))

        features_ref = self.session.add_container(
            ClassDescriptor(package=features_package, name="Features", kind=ClassKind.PLAIN, fields=feature_fields, start_path="features")
        )
        self.session.add_container(
            ClassDescriptor(
                package=self.root,
                name=model_name,
                kind=ClassKind.PLAIN,
                description=model.description,
                class_vars={"DEFINITION": model.url},
                fields=[
                    FieldDef(name="thing_id", json_name="thingId", type_ref=primitive("string")),
                    FieldDef(name="policy_id", json_name="policyId", type_ref=primitive("string")),
                    FieldDef(name="attributes", json_name="attributes", type_ref=attributes_ref),
                    FieldDef(name="features", json_name="features", type_ref=features_ref),
                ],
            )
        )
        return self.session.build_result(model_name, self.root, model.url)

    def _build_attributes(self, model: ThingModel) -> TypeRef:
        """Resolve the top-level properties into the Attributes class."""
        package = f"{self.root}.attributes"
        context = NamingContext(role=Role.ATTRIBUTE)
        fields = self.resolver.resolve_fields(model.properties, package, context)
        return self.session.add_container(
            ClassDescriptor(package=package, name="Attributes", kind=ClassKind.PLAIN, fields=fields, start_path="attributes")
        )

    def _build_actions(self, actions: dict[str, ActionModel], package: str, owner_name: str, feature: str | None = None) -> None:
        """One abstract interface per action plus the "<Owner>Action" enum of action names."""
        if not actions:
            return

        for action_name, action in actions.items():
            interface_name = as_class_name(action_name)
            self.session.reserve_class(package, interface_name)
            context = NamingContext(parent_class_name=interface_name, feature=feature)
            input_ref = self._resolve_action_schema(action.input, package, context, f"{interface_name}Input")
            output_ref = self._resolve_action_schema(action.output, package, context, f"{interface_name}Output")
            self.session.interfaces.append(
                ActionInterface(
                    package=package,
                    name=interface_name,
                    method_name=as_property_name(action_name),
                    action_name=action_name,
                    input=input_ref,
                    output=output_ref,
                    description=action.description or action.title,
                    deprecation_message=deprecation_message(action.deprecation),
                )
            )
            logger.debug(f"Generated action interface {package}.{interface_name}")

        self.session.wrapper_policy.build_action_enum(owner_name, list(actions), package)

    def _resolve_action_schema(self, node: SchemaNode | None, package: str, context: NamingContext, name: str) -> TypeRef | None:
        if node is None:
            return None
        return self.resolver.resolve(node, package, context, name)

    async def _build_feature(
        self,
        model: ThingModel,
        href: str,
        instance_name: str | None,
        taken_packages: set[str],
        taken_properties: set[str],
    ) -> FieldDef:
        """Load one tm:submodel feature and build its classes; returns its field of the Features class."""
        if not instance_name:
            raise MalformedSchemaError(f"{model.url}#/links", f"tm:submodel link to '{href}' has no instanceName")

        property_name = unique_name(as_property_name(instance_name), taken_properties)
        taken_properties.add(property_name)
        segment = unique_name(as_package_name(instance_name), taken_packages)
        taken_packages.add(segment)

        feature_name = as_class_name(property_name)
        package = f"{self.root}.features.{segment}"
        properties_package = f"{package}.properties"

        feature_url = resolve_url(model.url, href)
        logger.info(f"Generating feature {instance_name} from {feature_url}")
        feature_model = await self.generator.load_model(feature_url, self.loader, self.references)

        partition = group_by_category(feature_model.properties, {name: node.category for name, node in feature_model.properties.items()})
        category_classes = {category: as_class_name(category) for category in partition.categories}

        self.session.reserve_class(package, feature_name)
        self.session.reserve_class(properties_package, f"{feature_name}Properties")
        for class_name in category_classes.values():
            self.session.reserve_class(properties_package, class_name)

        context = NamingContext(role=Role.FEATURE, feature=feature_name).descend()
        resolved = {f.json_name: f for f in self.resolver.resolve_fields(feature_model.properties, properties_package, context)}

        properties_fields = []
        for category, names in partition.groups.items():
            marker_ref = self.session.add_marker(
                CategoryMarker(package=f"{self.root}.features", name=f"{as_class_name(category)}Category", category=category)
            )
            category_ref = self.session.add_container(
                ClassDescriptor(
                    package=properties_package,
                    name=category_classes[category],
                    kind=ClassKind.PLAIN,
                    fields=[resolved[name] for name in names],
                    base_classes=[marker_ref],
                    start_path=category,
                )
            )
            properties_fields.append(FieldDef(name=as_property_name(category), json_name=category, type_ref=category_ref))
        properties_fields.extend(resolved[name] for name in partition.ungrouped)

        properties_ref = self.session.add_container(
            ClassDescriptor(
                package=properties_package,
                name=f"{feature_name}Properties",
                kind=ClassKind.PLAIN,
                fields=properties_fields,
                start_path="properties",
            )
        )
        feature_ref = self.session.add_container(
            ClassDescriptor(
                package=package,
                name=feature_name,
                kind=ClassKind.PLAIN,
                description=feature_model.description,
                class_vars={"FEATURE_NAME": instance_name, "DEFINITION": feature_model.url},
                fields=[FieldDef(name="properties", json_name="properties", type_ref=properties_ref)],
            )
        )

        self._build_actions(feature_model.actions, f"{package}.actions", feature_name, feature=feature_name)
        return FieldDef(name=property_name, json_name=instance_name, type_ref=feature_ref)


def generate(
    model_url: str,
    output_package: str,
    output_dir: str | Path,
    options: GeneratorConfig | None = None,
) -> GenerationResult:
    """
    Generate a Python object model from a Thing Model.

    Args:
        model_url: http(s) URL, file:// URL or path of the Thing Model
        output_package: Root package of the generated code
        output_dir: Directory receiving the generated package tree
        options: Further options; model_url, output_package and output_dir override its values

    Returns:
        The generation result
    """
    config = GeneratorConfig.from_dict(options.to_dict()) if options else GeneratorConfig()
    config.model_url = model_url
    config.output_package = output_package
    config.output_dir = str(output_dir)
    return ThingModelGenerator(config).generate()
