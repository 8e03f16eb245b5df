"""
Passes over a whole translated batch: path rewrites and implicit SNAT translations.
"""
import logging
from typing import Any, Dict, List

from f5_as3_translator.config_object import ConfigObject, PathUpdate, SnatAddress
from f5_as3_translator.normalize.properties import actionable_config
from f5_as3_translator.translators.pool import SNAT_TRANSLATION_PROPERTIES

logger = logging.getLogger(__name__)


def _with_key_updates(path_updates: List[PathUpdate]) -> List[PathUpdate]:
    """
    Add the matching .key rewrite for each .crt rewrite.

    A certificate pointer moves its key with it unless the batch already says where
    the key went.
    """
    if any(update.old_string.endswith('.key') for update in path_updates):
        return list(path_updates)
    updates = list(path_updates)
    for update in path_updates:
        if update.old_string.endswith('.crt') and update.new_string.endswith('.crt'):
            updates.append(PathUpdate(old_string=f"{update.old_string[:-4]}.key",
                                      new_string=f"{update.new_string[:-4]}.key"))
    return updates


def _replace(value: Any, replacements: Dict[str, str]) -> Any:
    if isinstance(value, str):
        return replacements.get(value, value)
    if isinstance(value, list):
        return [_replace(element, replacements) for element in value]
    if isinstance(value, dict):
        return {replacements.get(key, key): _replace(sub_value, replacements) for key, sub_value in value.items()}
    return value


def apply_path_updates(configs: List[ConfigObject], path_updates: List[PathUpdate]) -> List[ConfigObject]:
    """
    Rewrite generated paths that turned out to be pointers to existing objects.

    Every property value, and every set key, equal to an update's old_string is
    replaced with its new_string. The configs are updated in place.

    Args:
        configs: Translated config objects
        path_updates: Rewrites collected from the translators

    Returns:
        The same list of configs
    """
    if not path_updates:
        return configs
    replacements = {update.old_string: update.new_string for update in _with_key_updates(path_updates)}
    for config in configs:
        config.properties = _replace(config.properties, replacements)
    logger.debug(f"Applied {len(replacements)} path updates to {len(configs)} config objects")
    return configs


def create_default_snat_translations(ctx, configs: List[ConfigObject],
                                     snat_addresses: List[SnatAddress]) -> List[ConfigObject]:
    """
    Default ltm snat-translation objects for SNAT pool addresses without a declared one.

    The appliance creates these implicitly when a snatpool is created, declaring them
    keeps later deployments from seeing them as unmanaged objects.

    Returns:
        New config objects, one per address, in first-seen order
    """
    declared = {address.name for address in snat_addresses if address.is_translation}
    existing = {config.path for config in configs}
    created = []
    seen = set()
    for address in snat_addresses:
        if address.is_translation or address.name in declared or address.name in seen:
            continue
        seen.add(address.name)
        if address.name in existing:
            continue
        item = {'address': address.address, 'enabled': {}}
        created.append(actionable_config(ctx, item, 'ltm snat-translation', address.name,
                                         SNAT_TRANSLATION_PROPERTIES))
    return created
