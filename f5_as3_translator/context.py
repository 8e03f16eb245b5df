"""Per-run translation context: target facts, inventory access and options"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from f5_as3_translator.version_gate import is_one_of_provisioned, version_in_range, version_less_than


class InventoryReader:
    """
    Read-only view of live appliance state.

    The base implementation knows nothing: every access profile is a plain 'all'
    profile and there are no virtual addresses or task metadata. Subclasses answer
    from a snapshot taken before translation starts.
    """

    def get_access_profile_type(self, path: str) -> str:
        return 'all'

    def get_virtual_address_list(self) -> List[Dict[str, Any]]:
        return []

    def get_task_metadata_virtual_addresses(self, tenant_id: str, app_id: str, item_id: str) -> List[Any]:
        return []


class StaticInventory(InventoryReader):
    """InventoryReader answering from plain dictionaries"""

    def __init__(self, access_profiles: Optional[Dict[str, str]] = None,
                 virtual_addresses: Optional[List[Dict[str, Any]]] = None,
                 task_metadata: Optional[Dict[Tuple[str, str, str], List[Any]]] = None):
        self._access_profiles = dict(access_profiles or {})
        self._virtual_addresses = list(virtual_addresses or [])
        self._task_metadata = dict(task_metadata or {})

    def get_access_profile_type(self, path: str) -> str:
        return self._access_profiles.get(path, 'all')

    def get_virtual_address_list(self) -> List[Dict[str, Any]]:
        return list(self._virtual_addresses)

    def get_task_metadata_virtual_addresses(self, tenant_id: str, app_id: str, item_id: str) -> List[Any]:
        return list(self._task_metadata.get((tenant_id, app_id, item_id), []))


@dataclass(frozen=True)
class TargetInfo:
    """Facts about the appliance being configured"""
    tmos_version: str = '0.0.0'
    provisioned_modules: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TargetInfo':
        """Build from {'tmosVersion': '15.1', 'provisionedModules': ['ltm', 'asm']}"""
        return cls(tmos_version=str(data.get('tmosVersion', '0.0.0')),
                   provisioned_modules=tuple(data.get('provisionedModules') or ()))


@dataclass
class TranslationContext:
    """
    Everything a translator may consult besides the declaration itself.

    Args:
        target: Target version and provisioned modules
        inventory: Live inventory reader, defaults to one that knows nothing
        tls_multi_cert_threshold: Version from which a TLS_Server with several certificates
            becomes a single profile. None keeps one profile per certificate.
        collect_errors: Record per-item failures on the batch instead of raising
    """
    target: TargetInfo = field(default_factory=TargetInfo)
    inventory: InventoryReader = field(default_factory=InventoryReader)
    tls_multi_cert_threshold: Optional[str] = None
    collect_errors: bool = False

    @property
    def tmos_version(self) -> str:
        return self.target.tmos_version

    def at_least(self, version: str) -> bool:
        return not version_less_than(self.target.tmos_version, version)

    def below(self, version: str) -> bool:
        return version_less_than(self.target.tmos_version, version)

    def in_range(self, min_version: Optional[str] = None, max_version: Optional[str] = None) -> bool:
        return version_in_range(self.target.tmos_version, min_version, max_version)

    def provisioned(self, *modules: str) -> bool:
        """True if any of modules is provisioned on the target"""
        return is_one_of_provisioned(self.target.provisioned_modules, modules)

    def provisioned_any(self, modules: Iterable[str]) -> bool:
        return is_one_of_provisioned(self.target.provisioned_modules, modules)
