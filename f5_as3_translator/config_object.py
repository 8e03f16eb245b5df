from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ConfigObject:
    """One emitted management-plane object"""
    path: str
    command: str
    properties: Dict[str, Any] = field(default_factory=dict)
    ignore: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'command': self.command,
            'properties': self.properties,
            'ignore': list(self.ignore),
        }


@dataclass(frozen=True)
class PathUpdate:
    """Replace every property value equal to old_string with new_string across a batch"""
    old_string: str
    new_string: str


@dataclass(frozen=True)
class SnatAddress:
    """An address a SNAT pool or SNAT translation places on the appliance"""
    name: str
    address: str
    is_translation: bool = False


@dataclass
class TranslationResult:
    """Everything one declared item contributes to a batch"""
    configs: List[ConfigObject] = field(default_factory=list)
    path_updates: List[PathUpdate] = field(default_factory=list)
    snat_addresses: List[SnatAddress] = field(default_factory=list)
    # Facts for whoever applies the batch, keyed by concern
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def update_path(self) -> bool:
        return bool(self.path_updates)

    def extend(self, other: 'TranslationResult') -> 'TranslationResult':
        """Append another result's objects in order and return self"""
        self.configs.extend(other.configs)
        self.path_updates.extend(other.path_updates)
        self.snat_addresses.extend(other.snat_addresses)
        self.metadata.update(other.metadata)
        return self

    def primary(self) -> Optional[ConfigObject]:
        return self.configs[0] if self.configs else None
