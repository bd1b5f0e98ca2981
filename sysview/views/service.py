"""
View catalog - named view definitions and usages over one model store.

Provides:
- Registration and lookup of definitions and usages by name
- Loading of the views DSL from YAML
- Resolution by name
"""

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import logging
import yaml

from ..model import ModelStore
from .classifier import default_filters
from .dsl import (
    INHERIT,
    RenderingReference,
    Replace,
    ViewDefinition,
    ViewpointReference,
    ViewType,
    ViewUsage,
    compile_filter,
    create_view_definition,
    create_view_usage,
    definition_summary,
    parse_expose,
)
from .resolver import ResolvedView, ViewResolver

logger = logging.getLogger(__name__)


class ViewDefinitionError(ValueError):
    """A view document or view reference that cannot be used."""
    pass


class ViewCatalog:
    """
    Catalog of view definitions and usages.

    Example:
        catalog = ViewCatalog(store)
        catalog.load_yaml('''
        definitions:
          - name: Structure
            view_type: InterconnectionView
            exposes: ['Vehicle::**']
            filters: default
        usages:
          - name: vehicleParts
            definition: Structure
            filters:
              - metaclass: PartUsage
        ''')
        resolved = catalog.resolve('vehicleParts')
    """

    def __init__(self, store: ModelStore):
        self.store = store
        self.resolver = ViewResolver(store)
        self._definitions: Dict[str, ViewDefinition] = {}
        self._usages: Dict[str, ViewUsage] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def define(self, definition: ViewDefinition, overwrite: bool = False) -> ViewDefinition:
        """
        Register a view definition.

        Raises:
            ViewDefinitionError: If the name is taken and ``overwrite`` is False
        """
        if definition.name in self._definitions and not overwrite:
            raise ViewDefinitionError(f"View definition '{definition.name}' already exists")

        self._definitions[definition.name] = definition
        logger.info(f"Defined view '{definition.name}' ({definition.view_type.value})")
        return definition

    def use(self, usage: ViewUsage, overwrite: bool = False) -> ViewUsage:
        """
        Register a view usage.

        The referenced definition is checked at resolve time, so usages
        may be registered before their definitions.
        """
        if usage.name in self._usages and not overwrite:
            raise ViewDefinitionError(f"View usage '{usage.name}' already exists")

        self._usages[usage.name] = usage
        logger.info(f"Registered view usage '{usage.name}' of '{usage.definition}'")
        return usage

    def get_definition(self, name: str) -> Optional[ViewDefinition]:
        return self._definitions.get(name)

    def get_usage(self, name: str) -> Optional[ViewUsage]:
        return self._usages.get(name)

    def list(self) -> List[Dict[str, Any]]:
        """
        List definitions and usages with metadata.

        Returns:
            List of info dicts, definitions first
        """
        views = []

        for definition in self._definitions.values():
            views.append({'kind': 'definition', **definition_summary(definition)})

        for usage in self._usages.values():
            views.append({
                'kind': 'usage',
                'name': usage.name,
                'definition': usage.definition,
                'overrides': [
                    key for key in ('exposes', 'filters', 'rendering')
                    if isinstance(getattr(usage, key), Replace)
                ],
            })

        return views

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, name: str) -> ResolvedView:
        """
        Resolve a view by name.

        ``name`` may be a usage, or a definition, which is then resolved
        through a usage that inherits everything.

        Raises:
            ViewDefinitionError: If the view or its definition is unknown
        """
        usage = self._usages.get(name)

        if usage is None:
            definition = self._definitions.get(name)
            if definition is None:
                raise ViewDefinitionError(f"View '{name}' not found")
            usage = create_view_usage(name, definition=name)
            return self.resolver.resolve(usage, definition)

        if not usage.definition:
            raise ViewDefinitionError(f"View usage '{name}' does not reference a definition")

        definition = self._definitions.get(usage.definition)
        if definition is None:
            raise ViewDefinitionError(
                f"View usage '{name}' references unknown definition '{usage.definition}'"
            )

        return self.resolver.resolve(usage, definition)

    # =========================================================================
    # Import
    # =========================================================================

    def load_yaml(self, yaml_content: str, overwrite: bool = False) -> List[str]:
        """
        Load definitions and usages from a YAML document.

        Args:
            yaml_content: YAML string with ``definitions`` and/or ``usages`` lists
            overwrite: Replace views that already exist

        Returns:
            Names of the loaded views, definitions first

        Raises:
            ViewDefinitionError: If the document is malformed
        """
        data = yaml.safe_load(yaml_content) or {}
        if not isinstance(data, Mapping):
            raise ViewDefinitionError("Views document must be a mapping")

        # Parse and check everything before registering anything
        definitions = [self._parse_definition(entry) for entry in data.get('definitions') or []]
        usages = [self._parse_usage(entry) for entry in data.get('usages') or []]

        if not overwrite:
            self._check_names(definitions, self._definitions, 'definition')
            self._check_names(usages, self._usages, 'usage')

        names = []
        for definition in definitions:
            names.append(self.define(definition, overwrite=overwrite).name)
        for usage in usages:
            names.append(self.use(usage, overwrite=overwrite).name)

        logger.info(f"Loaded {len(names)} views")
        return names

    def load_file(self, path: Path, overwrite: bool = False) -> List[str]:
        """Load views from a YAML file."""
        with open(path, 'r', encoding='utf-8') as f:
            return self.load_yaml(f.read(), overwrite=overwrite)

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse_definition(self, data: Any) -> ViewDefinition:
        name = self._require_name(data, 'definition')

        try:
            view_type = ViewType(data.get('view_type', ViewType.GENERAL.value))
        except ValueError:
            raise ViewDefinitionError(
                f"Unknown view_type '{data.get('view_type')}' in definition '{name}'"
            )

        filters = data.get('filters') or []
        if filters == 'default':
            filters = default_filters(view_type)
        else:
            filters = self._parse_filters(filters, name)

        options: Dict[str, Any] = {
            'exposes': self._parse_exposes(data.get('exposes') or [], name),
            'filters': filters,
            'documentation': data.get('documentation'),
        }
        if data.get('rendering'):
            options['rendering'] = self._parse_rendering(data['rendering'])
        if data.get('viewpoint'):
            options['viewpoint'] = ViewpointReference(name=str(data['viewpoint']))
        if data.get('qualified_name'):
            options['qualified_name'] = data['qualified_name']

        return create_view_definition(name, view_type, **options)

    def _parse_usage(self, data: Any) -> ViewUsage:
        name = self._require_name(data, 'usage')

        # Absent key inherits; a present key, even an empty list, replaces
        exposes = INHERIT
        if 'exposes' in data:
            exposes = Replace(tuple(self._parse_exposes(data['exposes'] or [], name)))

        filters = INHERIT
        if 'filters' in data:
            filters = Replace(tuple(self._parse_filters(data['filters'] or [], name)))

        rendering = INHERIT
        if 'rendering' in data:
            rendering = Replace(self._parse_rendering(data['rendering']) if data['rendering'] else None)

        return create_view_usage(
            name,
            definition=data.get('definition'),
            exposes=exposes,
            filters=filters,
            rendering=rendering,
        )

    def _check_names(self, views, existing: Dict[str, Any], kind: str) -> None:
        seen = set()
        for view in views:
            if view.name in existing or view.name in seen:
                raise ViewDefinitionError(f"View {kind} '{view.name}' already exists")
            seen.add(view.name)

    def _require_name(self, data: Any, kind: str) -> str:
        if not isinstance(data, Mapping):
            raise ViewDefinitionError(f"Each view {kind} must be a mapping, got {data!r}")
        name = data.get('name')
        if not name:
            raise ViewDefinitionError(f"View {kind} must include 'name' field")
        return str(name)

    def _parse_exposes(self, entries: Any, context: str):
        if not isinstance(entries, list):
            raise ViewDefinitionError(f"'exposes' must be a list in '{context}'")
        try:
            return [parse_expose(entry) for entry in entries]
        except ValueError as e:
            raise ViewDefinitionError(f"{e} in '{context}'") from e

    def _parse_filters(self, entries: Any, context: str):
        if not isinstance(entries, list):
            raise ViewDefinitionError(f"'filters' must be a list in '{context}'")
        try:
            return [compile_filter(entry) for entry in entries]
        except ValueError as e:
            raise ViewDefinitionError(f"{e} in '{context}'") from e

    def _parse_rendering(self, data: Any) -> RenderingReference:
        if isinstance(data, str):
            return RenderingReference(name=data)
        if not isinstance(data, Mapping) or not data.get('name'):
            raise ViewDefinitionError(f"Invalid rendering reference: {data!r}")
        return RenderingReference(name=str(data['name']), pre_release=bool(data.get('pre_release', False)))
