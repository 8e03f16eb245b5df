"""
Per-command property tables.

Each appliance command has a tuple of Prop rows describing which declaration keys
become which appliance properties, how their values are rendered, and on which
target versions and modules they apply. actionable_config() walks a table against a
declared item and produces a ConfigObject. Keys absent from the table are not emitted.
"""
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

from f5_as3_translator.config_object import ConfigObject
from f5_as3_translator.normalize.strings import quote_string, to_camel_case

if TYPE_CHECKING:
    from f5_as3_translator.context import TranslationContext


class _Missing:
    def __repr__(self):
        return 'MISSING'


MISSING = _Missing()

EXTEND_KINDS = (None, 'object', 'named', 'set', 'objarray')


@dataclass(frozen=True)
class Prop:
    """
    One row of a property table.

    Args:
        id: Appliance property name
        source: Declaration key, defaults to the camelCase form of id
        alt: Alternate declaration key that wins over source when present
        default: Value used when the key is absent, MISSING or None omits the property
        truth: Rendering of True
        falsehood: Rendering of False
        quoted: Render strings through quote_string
        int_to_string: Render numbers as strings
        extend: Nested rendering, one of 'object', 'named', 'set', 'objarray'
        sub: Table for nested values
        min_version: First target version the property applies to
        max_version: Last target version the property applies to
        modules: Property applies only when one of these modules is provisioned
        force_to_common: Rewrite /Common/Shared/x paths as /Common/x
        transform: Callable applied to the raw value before rendering
    """
    id: str
    source: Optional[str] = None
    alt: Optional[str] = None
    default: Any = MISSING
    truth: Any = MISSING
    falsehood: Any = MISSING
    quoted: bool = False
    int_to_string: bool = False
    extend: Optional[str] = None
    sub: Tuple['Prop', ...] = ()
    min_version: Optional[str] = None
    max_version: Optional[str] = None
    modules: Tuple[str, ...] = ()
    force_to_common: bool = False
    transform: Optional[Callable[[Any], Any]] = None

    def __post_init__(self):
        if self.extend not in EXTEND_KINDS:
            raise ValueError(f"Unknown extend kind '{self.extend}' for property '{self.id}'")

    @property
    def declared_key(self) -> str:
        return self.source or to_camel_case(self.id)


def lookup(obj: Any, prop: Prop) -> Any:
    """Find the declared value for a row, alt beats the camelCase key which beats the raw id"""
    if not isinstance(obj, dict):
        return MISSING
    for key in (prop.alt, prop.declared_key, prop.id):
        if key and obj.get(key) is not None:
            return obj[key]
    return MISSING


def _pointer_path(value: Any) -> Any:
    if isinstance(value, dict):
        if value.get('bigip'):
            return value['bigip']
        if value.get('use'):
            return value['use']
    return value


def _render_scalar(prop: Prop, value: Any) -> Any:
    if value is True and prop.truth is not MISSING:
        value = prop.truth
    elif value is False and prop.falsehood is not MISSING:
        value = prop.falsehood

    if value == '':
        return 'none'

    if prop.int_to_string and isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)

    if prop.quoted and isinstance(value, str) and value != 'none' and not value.startswith('"'):
        value = quote_string(value)

    value = _pointer_path(value)
    if prop.force_to_common and isinstance(value, str):
        value = value.replace('/Shared', '')
    return value


def _render_sub(ctx: 'TranslationContext', value: Dict[str, Any], table: Tuple[Prop, ...]) -> Dict[str, Any]:
    rendered = {}
    for sub_prop in table:
        if sub_prop.id == 'name':
            continue
        sub_value = assign_property(ctx, value, sub_prop)
        if sub_value is not MISSING:
            rendered[sub_prop.id] = sub_value
    return rendered


def _element_name(element: Dict[str, Any], index: int, table: Tuple[Prop, ...] = ()) -> str:
    """Key for a nested element: its name, the key named by the table's name row, its pointer, its position"""
    if element.get('name'):
        return str(element['name'])
    for sub_prop in table:
        if sub_prop.id == 'name' and element.get(sub_prop.declared_key) is not None:
            return str(element[sub_prop.declared_key])
    return str(element.get('bigip') or element.get('use') or index)


def assign_property(ctx: 'TranslationContext', obj: Dict[str, Any], prop: Prop) -> Any:
    """
    Render a single table row against a declared item.

    Returns:
        The rendered value, or MISSING when the property must not be emitted
    """
    value = lookup(obj, prop)
    if value is MISSING:
        if prop.default is not MISSING and prop.default is not None:
            value = prop.default
        elif prop.extend in ('set', 'objarray') and prop.default is MISSING:
            value = []
        else:
            return MISSING

    if (prop.min_version or prop.max_version) and not ctx.in_range(prop.min_version, prop.max_version):
        return MISSING
    if prop.modules and not ctx.provisioned_any(prop.modules):
        return MISSING

    if prop.transform is not None:
        value = prop.transform(value)
        if value is MISSING:
            return MISSING

    if prop.extend is None:
        return _render_scalar(prop, value)

    if prop.extend == 'object':
        if not isinstance(value, dict):
            return _render_scalar(prop, value)
        return _render_sub(ctx, value, prop.sub)

    if prop.extend == 'named':
        if value == 'none':
            return 'none'
        if not isinstance(value, dict):
            return value
        return {name: _render_sub(ctx, entry or {}, prop.sub) for name, entry in value.items()}

    if prop.extend == 'set':
        if isinstance(value, dict) and not ('bigip' in value or 'use' in value):
            elements = list(value.keys())
        elif isinstance(value, (list, tuple)):
            elements = list(value)
        else:
            elements = [value]
        rendered = {}
        for index, element in enumerate(elements):
            if element is None:
                continue
            if isinstance(element, dict) and not (element.get('bigip') or element.get('use')):
                rendered[_element_name(element, index, prop.sub)] = _render_sub(ctx, element, prop.sub)
                continue
            name = _pointer_path(element)
            if prop.quoted and isinstance(name, str) and name != 'none' and not name.startswith('"'):
                name = quote_string(name)
            rendered[str(name)] = {}
        return rendered

    # objarray
    if not isinstance(value, (list, tuple)):
        return value
    rendered = {}
    for index, element in enumerate(value):
        if isinstance(element, dict):
            rendered[_element_name(element, index, prop.sub)] = _render_sub(ctx, element, prop.sub)
        else:
            rendered[str(element)] = {}
    return rendered


def _deep_keys(value: Dict[str, Any], prefix: str) -> List[str]:
    keys = []
    for key, sub_value in value.items():
        path = f"{prefix}.{key}"
        if isinstance(sub_value, dict) and sub_value:
            keys.extend(_deep_keys(sub_value, path))
        else:
            keys.append(path)
    return keys


def ignored_keys(ctx: 'TranslationContext', item: Dict[str, Any], table: Tuple[Prop, ...]) -> List[str]:
    """
    Property paths listed in the item's 'ignore' mapping, in table order.

    Nested values yield dotted paths such as 'proxy-ca-passphrase' or
    'members./T/n:80.state'.
    """
    ignore = item.get('ignore')
    if not isinstance(ignore, dict) or not ignore:
        return []
    keys = []
    for prop in table:
        no_default = replace(prop, default=None)
        value = assign_property(ctx, ignore, no_default)
        if value is MISSING:
            continue
        if isinstance(value, dict) and value:
            keys.extend(_deep_keys(value, prop.id))
        else:
            keys.append(prop.id)
    return keys


def actionable_config(ctx: 'TranslationContext', item: Dict[str, Any], command: str, path: str,
                      table: Tuple[Prop, ...]) -> ConfigObject:
    """
    Render a declared item into a ConfigObject using a property table.

    The item is read, never modified.

    Args:
        ctx: Translation context, consulted for version and module gating
        item: Declared item, usually a translator's working copy
        command: Appliance command, e.g. 'ltm pool'
        path: Absolute appliance path
        table: Property table for the command

    Returns:
        ConfigObject with the rendered properties and ignore list
    """
    properties = {}
    for prop in table:
        value = assign_property(ctx, item, prop)
        if value is not MISSING:
            properties[prop.id] = value
    return ConfigObject(path=path, command=command, properties=properties,
                        ignore=ignored_keys(ctx, item, table))
