"""
Translate a whole declaration into an ordered batch of config objects.
"""
import copy
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from f5_as3_translator.config_object import ConfigObject, PathUpdate, SnatAddress, TranslationResult
from f5_as3_translator.context import TranslationContext
from f5_as3_translator.errors import DeclarationModifiedError
from f5_as3_translator.post_processing import apply_path_updates, create_default_snat_translations
from f5_as3_translator.registry import TranslatorRegistry

logger = logging.getLogger(__name__)

COMMON_TENANT = 'Common'
WIDEIP_COMMAND = 'gtm wideip'
TOPOLOGY_COMMAND = 'gtm topology'
LOAD_BALANCING_SETTINGS_COMMAND = 'gtm global-settings load-balancing'


class TranslationBatch:
    """
    Ordered config objects for one translation run.

    Objects are keyed by path. Adding an object whose path is already present
    replaces the earlier one where it stands, except topology records and global
    load-balancing settings which merge into the existing object.
    """

    def __init__(self):
        self.configs: List[ConfigObject] = []
        self.path_updates: List[PathUpdate] = []
        self.snat_addresses: List[SnatAddress] = []
        self.errors: List[Tuple[str, Optional[str], Optional[str], Exception]] = []
        self.metadata: Dict[str, Any] = {}
        self._positions: Dict[str, int] = {}

    def add(self, config: ConfigObject) -> None:
        if config.command.startswith(f"{WIDEIP_COMMAND} "):
            # wide IPs of different record types may share a name
            config.path = f"{config.path} {config.command.split()[-1]}"

        position = self._positions.get(config.path)
        if position is None:
            self._positions[config.path] = len(self.configs)
            self.configs.append(config)
            return

        existing = self.configs[position]
        if config.command == existing.command == TOPOLOGY_COMMAND:
            self._merge_topology(existing, config)
        elif config.command == existing.command == LOAD_BALANCING_SETTINGS_COMMAND:
            existing.properties.update(config.properties)
        else:
            logger.debug(f"Replacing {existing.command} at {config.path} with {config.command}")
            self.configs[position] = config

    @staticmethod
    def _merge_topology(existing: ConfigObject, config: ConfigObject) -> None:
        """Append records after the existing ones, renumbering their keys and order"""
        records = existing.properties.setdefault('records', {})
        for record in (config.properties.get('records') or {}).values():
            index = len(records)
            records[str(index)] = dict(record, order=index + 1)

    def extend(self, result: TranslationResult) -> int:
        """Add a translator's result, returning the number of config objects it held"""
        for config in result.configs:
            self.add(config)
        self.path_updates.extend(result.path_updates)
        self.snat_addresses.extend(result.snat_addresses)
        self.metadata.update(result.metadata)
        return len(result.configs)

    def as_dict(self) -> Dict[str, Dict[str, Any]]:
        """{path: {command, properties, ignore}} view of the batch"""
        return {
            config.path: {'command': config.command, 'properties': config.properties, 'ignore': list(config.ignore)}
            for config in self.configs
        }

    def __iter__(self) -> Iterator[ConfigObject]:
        return iter(self.configs)

    def __len__(self) -> int:
        return len(self.configs)

    def __getitem__(self, path: str) -> ConfigObject:
        return self.configs[self._positions[path]]

    def __contains__(self, path: str) -> bool:
        return path in self._positions


def _members(container: Dict[str, Any]) -> Iterator[Tuple[str, Dict[str, Any]]]:
    """Declared objects of a tenant or application, in declaration order"""
    for name, value in container.items():
        if isinstance(value, dict) and 'class' in value:
            yield name, value


def _own_properties(container: Dict[str, Any]) -> Dict[str, Any]:
    """A tenant or application without its declared members"""
    return {key: value for key, value in container.items() if not (isinstance(value, dict) and 'class' in value)}


def tenant_order(declaration: Dict[str, Any]) -> List[str]:
    """Tenant names with Common first, the rest in declaration order"""
    tenants = [name for name, value in _members(declaration) if value['class'] == 'Tenant']
    if COMMON_TENANT in tenants:
        tenants.remove(COMMON_TENANT)
        tenants.insert(0, COMMON_TENANT)
    return tenants


class DeclarationTranslator:
    """Walks a declaration's tenants and applications, dispatching each item to its translator"""

    def __init__(self, context: TranslationContext, registry: Optional[TranslatorRegistry] = None):
        self.context = context
        self.registry = registry or TranslatorRegistry()

    def translate_item(self, batch: TranslationBatch, declaration: Dict[str, Any], tenant_id: str,
                       app_id: Optional[str], item_id: str, item: Dict[str, Any]) -> int:
        """
        Translate one item into the batch.

        Returns:
            Number of config objects the item produced
        """
        translator = self.registry.get(item['class'])
        if translator is None:
            logger.debug(f"No translator for class {item['class']}, skipping /{tenant_id}/{app_id}/{item_id}")
            return 0

        logger.debug(f"Translating {item['class']} /{tenant_id}/{app_id}/{item_id}")
        try:
            result = translator.translate(self.context, tenant_id, app_id, item_id, item, declaration)
        except Exception as e:
            if not self.context.collect_errors:
                raise
            logger.error(f"Failed to translate /{tenant_id}/{app_id}/{item_id}: {e}")
            batch.errors.append((tenant_id, app_id, item_id, e))
            return 0
        return batch.extend(result)

    def translate_tenant(self, batch: TranslationBatch, declaration: Dict[str, Any], tenant_id: str) -> int:
        tenant = declaration[tenant_id]
        if tenant.get('enable') is False and tenant_id != COMMON_TENANT:
            logger.info(f"Tenant {tenant_id} is disabled, skipping")
            return 0

        produced = 0
        for member_id, member in _members(tenant):
            if member['class'] != 'Application':
                produced += self.translate_item(batch, declaration, tenant_id, None, member_id, member)
                continue
            if member.get('enable') is False:
                logger.info(f"Application /{tenant_id}/{member_id} is disabled, skipping")
                continue
            produced += self.translate_item(batch, declaration, tenant_id, member_id, '', _own_properties(member))
            for item_id, item in _members(member):
                produced += self.translate_item(batch, declaration, tenant_id, member_id, item_id, item)

        if produced and tenant_id != COMMON_TENANT:
            produced += self.translate_item(batch, declaration, tenant_id, None, '', _own_properties(tenant))
        return produced

    def translate(self, declaration: Dict[str, Any], tenants: Optional[List[str]] = None) -> TranslationBatch:
        snapshot = copy.deepcopy(declaration)
        batch = TranslationBatch()

        for tenant_id in tenants if tenants is not None else tenant_order(declaration):
            produced = self.translate_tenant(batch, declaration, tenant_id)
            logger.debug(f"Tenant {tenant_id} produced {produced} config objects")

        for config in create_default_snat_translations(self.context, batch.configs, batch.snat_addresses):
            batch.add(config)
        apply_path_updates(batch.configs, batch.path_updates)

        if declaration != snapshot:
            raise DeclarationModifiedError('Declaration was modified during translation')
        logger.info(f"Translated declaration into {len(batch)} config objects")
        return batch


def translate_declaration(declaration: Dict[str, Any], context: Optional[TranslationContext] = None,
                          registry: Optional[TranslatorRegistry] = None) -> TranslationBatch:
    """
    Translate every enabled tenant of a declaration.

    Args:
        declaration: Validated declaration, never modified
        context: Target version, provisioned modules and inventory
        registry: Translators to dispatch to, the full set by default

    Returns:
        TranslationBatch with configs in emission order

    Raises:
        TranslationError: The first per-item failure, unless context.collect_errors is set
    """
    return DeclarationTranslator(context or TranslationContext(), registry).translate(declaration)


def translate_tenant(declaration: Dict[str, Any], tenant_id: str, context: Optional[TranslationContext] = None,
                     registry: Optional[TranslatorRegistry] = None) -> TranslationBatch:
    """Translate a single tenant of a declaration, other tenants stay available for references"""
    return DeclarationTranslator(context or TranslationContext(), registry).translate(declaration, [tenant_id])
