"""Pools, their nodes, address discovery and SNAT address objects"""
import logging
from typing import Any, Dict, List, Optional

from f5_as3_translator.config_object import ConfigObject, SnatAddress, TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.paths import bigip_path_from_src, mcp_path, minimize_ip
from f5_as3_translator.translators import service_discovery
from f5_as3_translator.translators.base import REMARK, REMARK_OR_NONE, Translator

logger = logging.getLogger(__name__)

# adminState -> (state, session)
ADMIN_STATES = {
    'enable': ('user-up', 'user-enabled'),
    'disable': ('user-up', 'user-disabled'),
    'offline': ('user-down', 'user-disabled'),
}

METADATA_PROPERTIES = (
    Prop('value', quoted=True),
    Prop('persist'),
)

MEMBER_PROPERTIES = (
    REMARK,
    Prop('connection-limit', source='connectionLimit', default=0),
    Prop('dynamic-ratio', source='dynamicRatio', default=1),
    Prop('fqdn', extend='object', sub=(Prop('autopopulate', truth='enabled', falsehood='disabled'),)),
    Prop('metadata', extend='named', sub=METADATA_PROPERTIES),
    Prop('minimum-monitors', source='minimumMonitors', default=1),
    Prop('monitor', source='monitors', extend='set'),
    Prop('priority-group', source='priorityGroup', default=0),
    Prop('rate-limit', source='rateLimit', default='disabled'),
    Prop('ratio', default=1),
    Prop('session', default='user-enabled'),
    Prop('state', default='user-up'),
)

POOL_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('allow-nat', default='yes'),
    Prop('allow-snat', default='yes'),
    Prop('load-balancing-mode', source='loadBalancingMode', default='round-robin'),
    Prop('members', extend='objarray', sub=MEMBER_PROPERTIES),
    Prop('metadata', extend='named', sub=METADATA_PROPERTIES),
    Prop('min-active-members', source='minimumMembersActive', default=1),
    Prop('minimum-monitors', source='minimumMonitors'),
    Prop('monitor', source='monitors', extend='set'),
    Prop('reselect-tries', source='reselectTries', default=0),
    Prop('service-down-action', source='serviceDownAction', default='none'),
    Prop('slow-ramp-time', source='slowRampTime', default=10),
)

NODE_PROPERTIES = (
    Prop('address'),
    Prop('fqdn', extend='object', sub=(
        Prop('address-family', source='addressFamily', default='ipv4'),
        Prop('autopopulate', source='autoPopulate', truth='enabled', falsehood='disabled', default='disabled'),
        Prop('down-interval', source='downInterval', default=5),
        Prop('interval', source='queryInterval', default='3600'),
        Prop('tm-name', source='hostname'),
    )),
    Prop('metadata', extend='objarray', sub=METADATA_PROPERTIES),
)

SNAT_POOL_PROPERTIES = (
    Prop('members', extend='set'),
)

SNAT_TRANSLATION_PROPERTIES = (
    Prop('address'),
    Prop('arp', truth='enabled', falsehood='disabled', default='enabled'),
    Prop('connection-limit', source='maxConnections', default=0),
    Prop('disabled', extend='object'),
    Prop('enabled', extend='object'),
    Prop('ip-idle-timeout', source='ipIdleTimeout', default='indefinite'),
    Prop('tcp-idle-timeout', source='tcpIdleTimeout', default='indefinite'),
    Prop('traffic-group', source='trafficGroup', default='default'),
    Prop('udp-idle-timeout', source='udpIdleTimeout', default='indefinite'),
)


def set_monitors(obj: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turn a monitors list into a set keyed by monitor path.

    Built-in monitor names map to /Common with dashes turned into underscores and icmp
    spelled gateway_icmp. References are resolved to their bigip or use path.
    """
    monitors = obj.get('monitors')
    if not isinstance(monitors, list):
        return obj
    rendered = {}
    for monitor in monitors:
        if isinstance(monitor, str):
            name = 'gateway_icmp' if monitor == 'icmp' else monitor
            rendered[f"/Common/{name.replace('-', '_')}"] = {}
        else:
            rendered[bigip_path_from_src(monitor)] = {}
    obj['monitors'] = rendered
    return obj


def update_member(member: Dict[str, Any]) -> Dict[str, Any]:
    """Fill member defaults and map adminState onto the appliance's state and session pair"""
    if not member.get('monitors'):
        member['monitors'] = {'default': {}}
    member['minimumMonitors'] = member.get('minimumMonitors') or 1

    rate_limit = member.get('rateLimit')
    if isinstance(rate_limit, (int, float)) and rate_limit <= 0:
        member['rateLimit'] = 'disabled'

    admin_state = member.get('adminState')
    if admin_state:
        if admin_state in ADMIN_STATES:
            member['state'], member['session'] = ADMIN_STATES[admin_state]
        else:
            logger.error(f"Invalid adminState state: {admin_state}")

    for entry in (member.get('metadata') or {}).values():
        entry['persist'] = str(entry.get('persist', True)).lower()
    return member


def node_config(translator: Translator, ctx, tenant_id: str, app_id: Optional[str], address: str,
                name: str) -> ConfigObject:
    """ltm node for a static address"""
    return translator.render(ctx, {'address': address}, mcp_path(tenant_id, app_id, name), 'ltm node',
                             NODE_PROPERTIES)


def fqdn_node_config(translator: Translator, ctx, tenant_id: str, app_id: Optional[str],
                     member: Dict[str, Any]) -> ConfigObject:
    """ltm node resolving a hostname, named fqdnPrefix + hostname"""
    fqdn = dict(member)
    fqdn['queryInterval'] = 'ttl' if fqdn.get('queryInterval') == 0 else str(fqdn.get('queryInterval', 3600))
    if fqdn.get('addressFamily') is not None:
        fqdn['addressFamily'] = fqdn['addressFamily'].lower()
    name = f"{fqdn.get('fqdnPrefix') or ''}{fqdn['hostname']}"
    node = {
        'fqdn': fqdn,
        'metadata': [{'name': 'fqdnPrefix', 'value': fqdn.get('fqdnPrefix') or '', 'persist': 'true'}],
    }
    return translator.render(ctx, node, mcp_path(tenant_id, app_id, name), 'ltm node', NODE_PROPERTIES)


class AddressDiscovery:
    """
    Expands one pool member definition (or an Address_Discovery item) into nodes,
    pool members and at most one service discovery task.

    When discovery is required, members are left to the discovery worker and only
    the task is emitted.
    """

    def __init__(self, translator: Translator, ctx, tenant_id: str, node_app_id: Optional[str]):
        self.translator = translator
        self.ctx = ctx
        self.tenant_id = tenant_id
        self.node_app_id = node_app_id

    def _node_owner(self, definition: Dict[str, Any]):
        if definition.get('shareNodes'):
            return 'Common', None
        return self.tenant_id, self.node_app_id

    @staticmethod
    def _member(definition: Dict[str, Any], name: str) -> Dict[str, Any]:
        member = {key: value for key, value in definition.items() if key != 'ignore'}
        delimiter = '.' if ':' in name else ':'
        member['name'] = f"{name}{delimiter}{definition.get('servicePort')}"
        if member.get('rateLimit') == -1:
            member['rateLimit'] = 'disabled'
        if definition.get('addressDiscovery') == 'fqdn':
            member['fqdn'] = {'autopopulate': definition.get('autoPopulate', False)}
        else:
            member['fqdn'] = {'autopopulate': 'disabled'}
        return member

    def expand(self, definition: Dict[str, Any], sd_required: bool, resources: List[Dict[str, Any]],
               members: Optional[List[Dict[str, Any]]] = None) -> List[ConfigObject]:
        """
        Args:
            definition: Member definition with defaults applied by update_member
            sd_required: Some member of the pool needs a discovery task
            resources: Pools the discovery task feeds
            members: The pool's member list to append to, None for Address_Discovery

        Returns:
            Node objects in address order, then the discovery task if any
        """
        configs = []
        names = []
        node_tenant, node_app = self._node_owner(definition)

        if definition.get('bigip'):
            names.append(definition['bigip'])
        elif definition.get('addressDiscovery') == 'fqdn':
            config = fqdn_node_config(self.translator, self.ctx, node_tenant, node_app, definition)
            configs.append(config)
            names.append(config.path)
        elif definition.get('addressDiscovery') == 'static':
            for address, raw_name in self._static_addresses(definition):
                name = mcp_path(node_tenant, node_app, raw_name)
                names.append(name)
                configs.append(node_config(self.translator, self.ctx, node_tenant, node_app, address, raw_name))

        if members is not None and not sd_required:
            members.extend(self._member(definition, name) for name in names)
        if names:
            definition['name'] = names[-1]

        if sd_required and not isinstance(definition.get('addressDiscovery'), dict):
            configs.append(self._task(definition, resources))
        return configs

    @staticmethod
    def _static_addresses(definition: Dict[str, Any]):
        """Yield (address, node name) with route domains applied and %0 removed"""
        addresses = list(definition.get('serverAddresses') or [])
        server_names = {}
        for server in definition.get('servers') or []:
            addresses.append(server['address'])
            server_names[server['address'].split('%')[0]] = server['name']

        route_domain = definition.get('routeDomain')
        for address in addresses:
            raw_address = address.split('%')[0]
            if '%' not in address and route_domain:
                address = f"{address}%{route_domain}"
            if '%' in address and address.split('%')[1] == '0':
                address = address.split('%')[0]
            address = minimize_ip(address)
            yield address, server_names.get(raw_address, address)

    def _task(self, definition: Dict[str, Any], resources: List[Dict[str, Any]]) -> ConfigObject:
        task_tenant = 'Common' if definition.get('shareNodes') else self.tenant_id
        task = service_discovery.create_task(definition, task_tenant, resources)
        path = mcp_path(self.tenant_id, None, task['id'])
        service_discovery.prepare_task_for_render(task)
        return self.translator.render(self.ctx, task, path, service_discovery.TASK_COMMAND,
                                      service_discovery.TASK_PROPERTIES)


def _shared_app(tenant_id: str) -> Optional[str]:
    """Nodes and other tenant-level objects in Common live in /Common/Shared"""
    return 'Shared' if tenant_id == 'Common' else None


class PoolTranslator(Translator):
    """
    Pool → ltm pool, preceded by its nodes or its service discovery task.

    Members with addressDiscovery other than static or fqdn hand membership to a
    discovery task, so the pool's members property is ignored.
    """
    declared_class = 'Pool'
    command = 'ltm pool'
    properties = POOL_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item_id)
        definitions = item.get('members') or []
        configs = []

        for flag, key in (('allowNATEnabled', 'allow-nat'), ('allowSNATEnabled', 'allow-snat')):
            if isinstance(item.get(flag), bool):
                item[key] = 'yes' if item.pop(flag) else 'no'

        if not item.get('monitors'):
            item.pop('monitors', None)
            item.pop('minimumMonitors', None)
        set_monitors(item)

        sd_required = any(definition.get('addressDiscovery')
                          and definition.get('addressDiscovery') not in ('static', 'fqdn')
                          for definition in definitions)

        members: List[Dict[str, Any]] = []
        item['ignore'] = item.get('ignore') or {}
        discovery = AddressDiscovery(self, ctx, tenant_id, _shared_app(tenant_id))
        resources = [{'item': item, 'path': path}]
        for definition in definitions:
            update_member(set_monitors(definition))
            if definition.get('enable', True):
                configs.extend(discovery.expand(definition, sd_required, resources, members))

        if sd_required:
            item['ignore']['members'] = ''
            item.pop('members', None)
        else:
            item['members'] = members

        for entry in (item.get('metadata') or {}).values():
            entry['persist'] = str(entry.get('persist', True)).lower()

        configs.append(self.render(ctx, item, path))
        return TranslationResult(configs=configs)


class AddressDiscoveryTranslator(Translator):
    """Address_Discovery → one service discovery task feeding every listed pool"""
    declared_class = 'Address_Discovery'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        resolver = self.resolver(declaration)
        resources = []
        for resource in item.get('resources') or []:
            member = update_member(set_monitors(dict(resource.get('member') or {})))
            pointer = resource.get('item')
            pool_path = resolver.resolve(pointer, tenant_id, app_id)
            pool_item = {}
            if isinstance(pointer, dict) and pointer.get('use'):
                _, pool_item = resolver.follow(pointer['use'], tenant_id, app_id)
            resources.append({'item': pool_item, 'path': pool_path, 'member': member})

        item['resources'] = resources
        item['path'] = mcp_path(tenant_id, app_id, item_id)
        discovery = AddressDiscovery(self, ctx, tenant_id, _shared_app(tenant_id))
        return TranslationResult(configs=discovery.expand(item, True, resources))


class SNATPoolTranslator(Translator):
    """SNAT_Pool → ltm snatpool whose members are /tenant/<address>"""
    declared_class = 'SNAT_Pool'
    command = 'ltm snatpool'
    properties = SNAT_POOL_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        return snat_pool_result(self, ctx, tenant_id, mcp_path(tenant_id, app_id, item_id),
                                item.get('snatAddresses') or [])


def snat_pool_result(translator: Translator, ctx, tenant_id: str, path: str,
                     addresses: List[str]) -> TranslationResult:
    """A snatpool at path over addresses, recording each address for default translations"""
    result = TranslationResult()
    members = []
    for address in addresses:
        address = minimize_ip(address)
        name = mcp_path(tenant_id, None, address)
        members.append(name)
        result.snat_addresses.append(SnatAddress(name=name, address=address))
    result.configs.append(translator.render(ctx, {'members': members}, path, 'ltm snatpool',
                                            SNAT_POOL_PROPERTIES))
    return result


class SNATTranslationTranslator(Translator):
    """
    SNAT_Translation → ltm snat-translation named after its address.

    The appliance names the translations it creates implicitly after the address, so
    explicit ones use the same name at the tenant root.
    """
    declared_class = 'SNAT_Translation'
    command = 'ltm snat-translation'
    properties = SNAT_TRANSLATION_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if item.pop('adminState', 'enable') == 'enable':
            item['enabled'] = {}
        else:
            item['disabled'] = {}
        item['address'] = minimize_ip(item['address'])
        path = mcp_path(tenant_id, None, item['address'])
        return TranslationResult(
            configs=[self.render(ctx, item, path)],
            snat_addresses=[SnatAddress(name=path, address=item['address'], is_translation=True)],
        )
