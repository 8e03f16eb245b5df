"""Resolution of use/bigip pointers against a declaration"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from f5_as3_translator.errors import InvalidReferenceError, ReferenceCycleError
from f5_as3_translator.paths import mcp_path

logger = logging.getLogger(__name__)

# Classes whose appliance object does not live at /tenant/app/item
ROOT_LEVEL_CLASSES = {'Service_Address', 'SNAT_Translation'}


class ReferenceResolver:
    """
    Resolve pointers found in a declaration without modifying it.

    Pointer forms:
        {'bigip': '/Common/http'}  - existing appliance object, must be absolute
        {'use': 'pool'}            - item in the same application
        {'use': 'app/pool'}        - item in another application of the same tenant
        {'use': '/T/A/pool'}       - any item, including /Common/Shared/...

    Absolute pointers may continue past the item into its properties, for example
    '/T/A/cert/chainCA'.
    """

    def __init__(self, declaration: Dict[str, Any]):
        self.declaration = declaration
        self._primary_paths: Dict[Tuple[str, ...], str] = {}

    def absolute_segments(self, pointer: str, tenant_id: Optional[str] = None,
                          app_id: Optional[str] = None) -> List[str]:
        """
        Convert a pointer to its absolute segment list.

        Segments are split on '/' only, names such as 'my.app' or '0.0.0.0' stay whole.
        """
        if not isinstance(pointer, str) or pointer == '':
            raise InvalidReferenceError(f"Pointer must be a non-empty string, got {pointer!r}")
        if pointer.startswith('/'):
            return pointer.split('/')[1:]
        segments = pointer.split('/')
        if len(segments) == 1:
            if tenant_id is None or app_id is None:
                raise InvalidReferenceError(f"Relative pointer '{pointer}' needs a tenant and application")
            return [tenant_id, app_id] + segments
        if len(segments) == 2:
            if tenant_id is None:
                raise InvalidReferenceError(f"Relative pointer '{pointer}' needs a tenant")
            return [tenant_id] + segments
        raise InvalidReferenceError(f"Pointer '{pointer}' is neither absolute nor a short relative form")

    def get(self, pointer: str, tenant_id: Optional[str] = None, app_id: Optional[str] = None) -> Any:
        """
        Return the declared value a pointer refers to.

        Raises:
            InvalidReferenceError: If any segment of the pointer does not exist
        """
        segments = self.absolute_segments(pointer, tenant_id, app_id)
        node: Any = self.declaration
        for depth, segment in enumerate(segments):
            if isinstance(node, dict) and segment in node:
                node = node[segment]
            elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
                node = node[int(segment)]
            else:
                walked = '/' + '/'.join(segments[:depth + 1])
                raise InvalidReferenceError(f"Unable to find '{walked}' while resolving '{pointer}'")
        return node

    def exists(self, pointer: str, tenant_id: Optional[str] = None, app_id: Optional[str] = None) -> bool:
        try:
            self.get(pointer, tenant_id, app_id)
        except InvalidReferenceError:
            return False
        return True

    def follow(self, pointer: str, tenant_id: Optional[str] = None,
               app_id: Optional[str] = None) -> Tuple[List[str], Any]:
        """
        Follow a use pointer, and any pure {'use': ...} aliases it lands on, to a real value.

        Returns:
            (absolute segments of the final target, target value)

        Raises:
            ReferenceCycleError: If the chain revisits a pointer
        """
        seen: List[str] = []
        while True:
            segments = self.absolute_segments(pointer, tenant_id, app_id)
            absolute = '/' + '/'.join(segments)
            if absolute in seen:
                raise ReferenceCycleError(seen + [absolute])
            seen.append(absolute)
            target = self.get(absolute)
            if isinstance(target, dict) and set(target.keys()) == {'use'}:
                logger.debug(f"Following alias {absolute} -> {target['use']}")
                pointer = target['use']
                tenant_id, app_id = segments[0], segments[1] if len(segments) > 1 else None
                continue
            return segments, target

    def primary_path(self, segments: List[str]) -> str:
        """
        The appliance path of the primary object a declared item produces.

        Most items map /T/A/item one-to-one. Root-level classes live at /T/item, or
        /Common/Shared/item inside Common.
        """
        key = tuple(segments[:3])
        if key in self._primary_paths:
            return self._primary_paths[key]
        if len(segments) < 3:
            path = '/' + '/'.join(segments)
        else:
            tenant_id, app_id, item_id = segments[:3]
            item = self.get('/' + '/'.join(segments[:3]))
            if isinstance(item, dict) and item.get('class') in ROOT_LEVEL_CLASSES:
                # Service_Address objects are emitted with a Service_Address- prefix the appliance drops
                path = mcp_path(tenant_id, 'Shared' if tenant_id == 'Common' else None, item_id)
            else:
                path = mcp_path(tenant_id, app_id, item_id)
        self._primary_paths[key] = path
        return path

    def resolve_use(self, pointer: str, tenant_id: Optional[str] = None, app_id: Optional[str] = None) -> str:
        """Resolve a use pointer to the appliance path of its target"""
        segments, _ = self.follow(pointer, tenant_id, app_id)
        return self.primary_path(segments)

    @staticmethod
    def check_bigip(path: Any) -> str:
        """
        Validate a bigip pointer.

        Raises:
            InvalidReferenceError: If the path is not absolute
        """
        if not isinstance(path, str) or not path.startswith('/'):
            raise InvalidReferenceError(f"bigip reference '{path}' must be an absolute path")
        return path

    def resolve(self, value: Any, tenant_id: Optional[str] = None, app_id: Optional[str] = None) -> Any:
        """
        Resolve any reference form.

        Returns:
            The checked bigip path, the resolved use path, or the literal value unchanged
        """
        if isinstance(value, dict):
            if 'bigip' in value:
                return self.check_bigip(value['bigip'])
            if 'use' in value:
                return self.resolve_use(value['use'], tenant_id, app_id)
        return value

    def absolutize(self, value: Any, tenant_id: Optional[str] = None, app_id: Optional[str] = None) -> Any:
        """
        Rewrite every pointer inside value in place to its absolute declaration path.

        use pointers are followed through aliases and must exist. bigip pointers must be
        absolute. Everything else is left alone.

        Raises:
            InvalidReferenceError: For a dangling use pointer or a relative bigip pointer
            ReferenceCycleError: For a use chain that loops
        """
        if isinstance(value, list):
            for element in value:
                self.absolutize(element, tenant_id, app_id)
        elif isinstance(value, dict):
            if isinstance(value.get('use'), str):
                segments, _ = self.follow(value['use'], tenant_id, app_id)
                value['use'] = '/' + '/'.join(segments)
            if isinstance(value.get('bigip'), str):
                self.check_bigip(value['bigip'])
            for key, sub_value in value.items():
                if key not in ('use', 'bigip'):
                    self.absolutize(sub_value, tenant_id, app_id)
        return value

    def owner(self, pointer: str) -> Tuple[str, Optional[str], Optional[str]]:
        """Return (tenant, application, item) named by an absolute pointer"""
        segments = self.absolute_segments(pointer)
        padded = segments + [None] * (3 - len(segments))
        return padded[0], padded[1], padded[2]
