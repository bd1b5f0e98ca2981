"""
Views DSL values.

A view is declared, not computed: this module only holds the immutable
values that describe one. Resolution lives in resolver.py.

Grammar (as accepted by the YAML loader in service.py):

    definition := {name, view_type?, exposes?, filters?, rendering?, documentation?, viewpoint?}
    usage      := {name, definition?, exposes?, filters?, rendering?}

    expose := 'A::B'                 single element
            | 'Pkg::*'               direct members of Pkg
            | 'Pkg::**'              all members of Pkg, recursively
            | {target, all_members?, recursive?, alias?}

    filter := {metaclass: str, not?: bool, and?: filter, or?: filter}
            | {expression: str, not?: bool, and?: filter, or?: filter}
            | {not?: bool, and?: filter, or?: filter}

Filters are compiled into a small tagged tree:

    MatchAll | MetaclassTest | ExpressionTest | Not | And | Or

Evaluation order of one legacy filter mapping is preserved exactly:
leaf test, then negation, then ``and`` (only while true), then ``or``
(only while false). ``compile_filter`` encodes that order as
``Or(And(Not(leaf), and), or)``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Mapping, Optional, Tuple, TypeVar, Union


class ViewType(str, Enum):
    """Standard SysML v2 view categories."""
    GENERAL = "GeneralView"
    INTERCONNECTION = "InterconnectionView"
    ACTION_FLOW = "ActionFlowView"
    STATE_TRANSITION = "StateTransitionView"
    SEQUENCE = "SequenceView"


class Metaclass:
    """Metaclass tags the default filters and the classifier refer to."""
    PART_DEF = "PartDef"
    PORT_DEF = "PortDef"
    ACTION_DEF = "ActionDef"
    STATE_DEF = "StateDef"
    REQUIREMENT_DEF = "RequirementDef"
    VIEW_DEF = "ViewDef"
    VIEWPOINT_DEF = "ViewpointDef"

    PART_USAGE = "PartUsage"
    PORT_USAGE = "PortUsage"
    ACTION_USAGE = "ActionUsage"
    STATE_USAGE = "StateUsage"
    REQUIREMENT_USAGE = "RequirementUsage"
    CONNECTION_USAGE = "ConnectionUsage"
    FLOW_USAGE = "FlowUsage"
    INTERFACE_USAGE = "InterfaceUsage"
    ALLOCATION_USAGE = "AllocationUsage"


class FilterSyntaxError(ValueError):
    """A filter mapping that cannot be compiled."""
    pass


# ============================================================================
# Expose
# ============================================================================

@dataclass(frozen=True)
class ExposeRule:
    """
    Selects model elements to include in a view.

    Attributes:
        target: Qualified name of an element, or a namespace pattern
        all_members: Include the direct members of the target
        recursive: Include members transitively
        alias: Display alias; has no effect on resolution
        id: Identifier of the rule
    """
    target: str
    all_members: bool = False
    recursive: bool = False
    alias: Optional[str] = None
    id: str = ""

    def __post_init__(self):
        if not self.id:
            object.__setattr__(self, 'id', f"expose-{self.target}")


def expose_member(target: str, alias: Optional[str] = None) -> ExposeRule:
    """Expose a single element."""
    return ExposeRule(target=target, alias=alias, id=f"expose-{target}")


def expose_all_members(namespace: str) -> ExposeRule:
    """Expose a namespace and its direct members (``::*``)."""
    return ExposeRule(target=namespace, all_members=True, id=f"expose-{namespace}::*")


def expose_recursive(namespace: str) -> ExposeRule:
    """Expose a namespace and all nested members (``::**``)."""
    return ExposeRule(
        target=namespace,
        all_members=True,
        recursive=True,
        id=f"expose-{namespace}::**",
    )


# ============================================================================
# Filter expressions
# ============================================================================

@dataclass(frozen=True)
class MatchAll:
    """Leaf that accepts every element."""
    pass


@dataclass(frozen=True)
class MetaclassTest:
    """Leaf: element metaclass equals ``metaclass``."""
    metaclass: str


@dataclass(frozen=True)
class ExpressionTest:
    """Leaf: ``expression`` occurs in the element metaclass or name."""
    expression: str


@dataclass(frozen=True)
class Not:
    operand: 'FilterExpression'


@dataclass(frozen=True)
class And:
    """``right`` is only evaluated when ``left`` holds."""
    left: 'FilterExpression'
    right: 'FilterExpression'


@dataclass(frozen=True)
class Or:
    """``right`` is only evaluated when ``left`` fails."""
    left: 'FilterExpression'
    right: 'FilterExpression'


FilterExpression = Union[MatchAll, MetaclassTest, ExpressionTest, Not, And, Or]


def filter_by_metaclass(metaclass: str, negate: bool = False) -> FilterExpression:
    """Filter on a metaclass, optionally negated."""
    test = MetaclassTest(metaclass)
    return Not(test) if negate else test


def and_filter(a: FilterExpression, b: FilterExpression) -> FilterExpression:
    return And(a, b)


def or_filter(a: FilterExpression, b: FilterExpression) -> FilterExpression:
    return Or(a, b)


def compile_filter(predicate: Mapping[str, Any]) -> FilterExpression:
    """
    Compile a legacy filter mapping into a filter expression tree.

    Args:
        predicate: Mapping with optional keys metaclass, expression, not,
            and, or (nested mappings), and id (ignored)

    Returns:
        Equivalent filter expression

    Raises:
        FilterSyntaxError: If the mapping is malformed or combines two leaf tests
    """
    if not isinstance(predicate, Mapping):
        raise FilterSyntaxError(f"Filter must be a mapping, got {type(predicate).__name__}")

    unknown = set(predicate) - {'id', 'metaclass', 'expression', 'not', 'and', 'or'}
    if unknown:
        raise FilterSyntaxError(f"Unknown filter keys: {sorted(unknown)}")

    metaclass = predicate.get('metaclass')
    expression = predicate.get('expression')
    if metaclass and expression:
        raise FilterSyntaxError(
            "A filter can test either 'metaclass' or 'expression', not both; "
            "combine two filters with 'and'/'or' instead (older releases silently tested 'expression' only)"
        )

    if metaclass:
        result: FilterExpression = MetaclassTest(str(metaclass))
    elif expression:
        result = ExpressionTest(str(expression))
    else:
        result = MatchAll()

    if predicate.get('not'):
        result = Not(result)

    if predicate.get('and') is not None:
        result = And(result, compile_filter(predicate['and']))

    if predicate.get('or') is not None:
        result = Or(result, compile_filter(predicate['or']))

    return result


def describe_filter(expr: FilterExpression) -> str:
    """Render a filter expression as a short human-readable string."""
    if isinstance(expr, MatchAll):
        return "*"
    if isinstance(expr, MetaclassTest):
        return f"metaclass={expr.metaclass}"
    if isinstance(expr, ExpressionTest):
        return f"~'{expr.expression}'"
    if isinstance(expr, Not):
        return f"NOT {describe_filter(expr.operand)}"
    if isinstance(expr, And):
        return f"({describe_filter(expr.left)} AND {describe_filter(expr.right)})"
    if isinstance(expr, Or):
        return f"({describe_filter(expr.left)} OR {describe_filter(expr.right)})"
    raise TypeError(f"Not a filter expression: {expr!r}")


# ============================================================================
# Overrides
# ============================================================================

T = TypeVar("T")


@dataclass(frozen=True)
class Inherit:
    """Use the value declared on the view definition."""

    def __repr__(self):
        return "INHERIT"


@dataclass(frozen=True)
class Replace(Generic[T]):
    """Replace the definition's value wholesale (an empty value is a valid replacement)."""
    value: T


INHERIT = Inherit()

Override = Union[Inherit, Replace]


def effective(override: Override, inherited: T) -> T:
    """Return the overriding value, or ``inherited`` when the override inherits."""
    if isinstance(override, Replace):
        return override.value
    return inherited


# ============================================================================
# Viewpoints and rendering
# ============================================================================

@dataclass(frozen=True)
class RenderingReference:
    name: str
    pre_release: bool = False


@dataclass(frozen=True)
class ViewpointReference:
    name: str


@dataclass(frozen=True)
class Stakeholder:
    name: str
    type: Optional[str] = None


@dataclass(frozen=True)
class Concern:
    id: str
    name: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ViewpointDefinition:
    """Stakeholders and concerns a view is meant to address."""
    name: str
    id: str = ""
    qualified_name: str = ""
    documentation: Optional[str] = None
    stakeholders: Tuple[Stakeholder, ...] = ()
    concerns: Tuple[Concern, ...] = ()


def create_viewpoint_definition(
    name: str,
    stakeholders=(),
    concerns=(),
    documentation: Optional[str] = None,
) -> ViewpointDefinition:
    return ViewpointDefinition(
        name=name,
        id=f"viewpoint-def-{name}",
        qualified_name=name,
        documentation=documentation,
        stakeholders=tuple(stakeholders),
        concerns=tuple(concerns),
    )


# ============================================================================
# View definitions and usages
# ============================================================================

@dataclass(frozen=True)
class ViewDefinition:
    """
    A reusable view template.

    Top-level filters are implicitly AND-ed.
    """
    name: str
    view_type: ViewType = ViewType.GENERAL
    exposes: Tuple[ExposeRule, ...] = ()
    filters: Tuple[FilterExpression, ...] = ()
    rendering: Optional[RenderingReference] = None
    documentation: Optional[str] = None
    viewpoint: Optional[ViewpointReference] = None
    nested_views: Tuple['ViewDefinition', ...] = ()
    id: str = ""
    qualified_name: str = ""


@dataclass(frozen=True)
class ViewUsage:
    """
    An instance of a view definition.

    Each of exposes, filters and rendering is either INHERIT or a
    Replace(...) that supersedes the definition's value as a whole.
    """
    name: str
    definition: Optional[str] = None
    exposes: Override = INHERIT
    filters: Override = INHERIT
    rendering: Override = INHERIT
    id: str = ""
    qualified_name: str = ""


def create_view_definition(
    name: str,
    view_type: ViewType = ViewType.GENERAL,
    **options
) -> ViewDefinition:
    """
    Create a view definition.

    Args:
        name: Definition name
        view_type: View category
        **options: Any other ViewDefinition field; sequences are frozen to tuples

    Returns:
        ViewDefinition with id ``view-def-<name>``
    """
    for key in ('exposes', 'filters', 'nested_views'):
        if key in options:
            options[key] = tuple(options[key])
    qualified_name = options.pop('qualified_name', name)
    return ViewDefinition(
        name=name,
        view_type=ViewType(view_type),
        id=f"view-def-{name}",
        qualified_name=qualified_name,
        **options,
    )


def create_view_usage(
    name: str,
    definition: Optional[str] = None,
    **options
) -> ViewUsage:
    """
    Create a view usage.

    Overrides may be passed as Replace/INHERIT values or as plain
    sequences, which are taken as replacements.
    """
    for key in ('exposes', 'filters'):
        if key in options and not isinstance(options[key], (Inherit, Replace)):
            options[key] = Replace(tuple(options[key]))
    if 'rendering' in options and not isinstance(options['rendering'], (Inherit, Replace)):
        options['rendering'] = Replace(options['rendering'])
    qualified_name = options.pop('qualified_name', name)
    return ViewUsage(
        name=name,
        definition=definition,
        id=f"view-{name}",
        qualified_name=qualified_name,
        **options,
    )


def parse_expose(entry: Union[str, Mapping[str, Any]]) -> ExposeRule:
    """
    Parse one expose entry of the DSL.

    Strings follow SysML notation: ``A::B``, ``Pkg::*`` and ``Pkg::**``.

    Raises:
        ValueError: If the entry is neither a string nor a mapping with a target
    """
    if isinstance(entry, str):
        if entry.endswith('::**'):
            return expose_recursive(entry[:-4])
        if entry.endswith('::*'):
            return expose_all_members(entry[:-3])
        return expose_member(entry)

    if isinstance(entry, Mapping):
        target = entry.get('target')
        if not target:
            raise ValueError(f"Expose entry needs a 'target': {dict(entry)}")
        return ExposeRule(
            target=str(target),
            all_members=bool(entry.get('all_members', False)),
            recursive=bool(entry.get('recursive', False)),
            alias=entry.get('alias'),
            id=entry.get('id', ''),
        )

    raise ValueError(f"Invalid expose entry: {entry!r}")


def definition_summary(definition: ViewDefinition) -> Dict[str, Any]:
    """Small dict description of a definition, for listings."""
    return {
        'name': definition.name,
        'view_type': definition.view_type.value,
        'exposes': len(definition.exposes),
        'filters': len(definition.filters),
        'rendering': definition.rendering.name if definition.rendering else None,
    }
