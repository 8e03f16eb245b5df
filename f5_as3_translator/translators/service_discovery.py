"""Service discovery task construction for dynamically populated pools"""
import copy
import posixpath
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from f5_as3_translator.hashing import canonicalise, tenant_scoped_id
from f5_as3_translator.normalize.properties import Prop

TASK_COMMAND = 'mgmt shared service-discovery task'

# Values that define a task's identity. Credentials and intervals are left out so
# rotating a secret or changing the poll rate keeps the same task.
IDENTITY_KEYS = (
    'path', 'servicePort', 'routeDomain', 'provider', 'uri', 'jmesPathQuery', 'region', 'projectId',
    'resourceGroup', 'subscriptionId', 'directoryId', 'applicationId', 'tagKey', 'tagValue',
    'serverAddresses', 'bigip', 'hostname', 'fqdnPrefix', 'shareNodes', 'servers', 'addressFamily',
    'resourceType', 'resourceId', 'environment',
)

# Provider option keys per cloud provider, and the credential each one keeps out of diffs
PROVIDER_OPTIONS = {
    'aws': (('tagKey', 'tagValue', 'addressRealm', 'region', 'roleARN', 'externalId', 'accessKeyId',
             'secretAccessKey'), 'secretAccessKey'),
    'azure': (('tagKey', 'tagValue', 'resourceId', 'resourceType', 'addressRealm', 'resourceGroup',
               'subscriptionId', 'useManagedIdentity', 'directoryId', 'applicationId', 'apiAccessKey',
               'environment'), 'apiAccessKey'),
    'gce': (('tagKey', 'tagValue', 'addressRealm', 'region', 'encodedCredentials', 'projectId'),
            'encodedCredentials'),
    'consul': (('addressRealm', 'uri', 'encodedToken', 'trustCA', 'rejectUnauthorized', 'jmesPathQuery'),
               'encodedToken'),
}

# Declaration names that the discovery worker spells differently
PROVIDER_OPTION_NAMES = {'directoryId': 'tenantId', 'applicationId': 'clientId'}

STATIC_PROVIDERS = ('fqdn', 'static')

RESOURCE_PROPERTIES = (
    Prop('type'),
    Prop('path'),
    Prop('options'),
)

TASK_PROPERTIES = (
    Prop('updateInterval', source='updateInterval'),
    Prop('resources', source='resources', extend='objarray', sub=RESOURCE_PROPERTIES),
    Prop('nodePrefix', source='nodePrefix'),
    Prop('provider', source='provider'),
    Prop('providerOptions', source='providerOptions'),
    Prop('metadata', source='metadata'),
    Prop('routeDomain', source='routeDomain'),
    Prop('altId', source='altId'),
)


def monitor_expression(member: Dict[str, Any]) -> str:
    """'default', or the 'min N of { a b }' form for an explicit monitor set"""
    monitors = member.get('monitors')
    if isinstance(monitors, dict) and 'default' not in monitors:
        names = ' '.join(monitors.keys())
        return f"min {member.get('minimumMonitors', 1)} of \\{{ {names} \\}}"
    return 'default'


def create_task_resource(resource: Dict[str, Any], sd_item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Describe one pool or address list the task keeps populated.

    Args:
        resource: {'item': <declared pool or address list>, 'path': <its path>} and,
            for Address_Discovery, the 'member' template
        sd_item: The member or Address_Discovery item that needs discovery

    Returns:
        {'type': 'pool'|'addressList', 'path': ..., 'options': {...}}
    """
    member = resource['member'] if sd_item.get('class') == 'Address_Discovery' else sd_item
    if resource['item'].get('class') == 'Firewall_Address_List':
        return {'type': 'addressList', 'path': resource['path'], 'options': {}}

    options = {key: member.get(key) for key in ('servicePort', 'connectionLimit', 'rateLimit', 'dynamicRatio',
                                                'ratio', 'priorityGroup', 'state', 'session')}
    options = {key: value for key, value in options.items() if value is not None}
    options['monitor'] = monitor_expression(member)
    return {'type': 'pool', 'path': resource['path'], 'options': options}


def create_task_provider(sd_item: Dict[str, Any]) -> Dict[str, Any]:
    """Provider name, provider options and credential ignore block for a task"""
    provider = sd_item.get('addressDiscovery')
    result: Dict[str, Any] = {'provider': provider, 'providerOptions': {}, 'ignore': {}}

    if provider in STATIC_PROVIDERS:
        result['provider'] = 'static'
        result['providerOptions']['nodes'] = _static_nodes(sd_item)
    elif provider in PROVIDER_OPTIONS:
        keys, credential = PROVIDER_OPTIONS[provider]
        options = {}
        for key in keys:
            if sd_item.get(key) is not None:
                options[PROVIDER_OPTION_NAMES.get(key, key)] = sd_item[key]
        result['providerOptions'] = options
        if not sd_item.get('credentialUpdate') and options.get(credential) is not None:
            result['ignore'] = {'providerOptions': {credential: options[credential]}}
    return result


def _static_nodes(sd_item: Dict[str, Any]) -> List[Dict[str, str]]:
    if sd_item.get('bigip'):
        return [{'id': sd_item['bigip']}]
    if sd_item.get('hostname'):
        return [{'id': f"{posixpath.dirname(sd_item['name'])}/{sd_item['hostname']}"}]
    if sd_item.get('name'):
        folder = posixpath.dirname(sd_item['name'])
        route_domain = f"%{sd_item['routeDomain']}" if sd_item.get('routeDomain') else ''
        nodes = [{'id': f"{folder}/{address}{route_domain}"} for address in sd_item.get('serverAddresses', [])]
        nodes.extend({'id': f"{folder}/{server['name']}"} for server in sd_item.get('servers', []))
        return nodes
    return [{'id': address} for address in sd_item.get('serverAddresses', [])]


def _identity_values(value: Any, found: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Collect identity keys from a nested structure, the deepest later value wins"""
    found = {} if found is None else found
    if isinstance(value, dict):
        for key, sub_value in value.items():
            if isinstance(sub_value, (dict, list)):
                _identity_values(sub_value, found)
            elif key in IDENTITY_KEYS and sub_value is not None:
                found[key] = sub_value
    elif isinstance(value, list):
        for element in value:
            _identity_values(element, found)
    return found


def task_identity(task: Dict[str, Any]) -> Dict[str, Any]:
    """
    The values a task id is computed from.

    Each resource contributes its own identity values and the resources are sorted by
    their canonical form, so the same set of pools gives the same identity whichever
    pool declared the discovery first.
    """
    rest = {key: value for key, value in task.items() if key not in ('resources', 'ignore')}
    resources = sorted((_identity_values(resource) for resource in task.get('resources', [])),
                       key=canonicalise)
    return {'resources': resources, **_identity_values(rest)}


def _owning_tenant(task: Dict[str, Any], sd_item: Dict[str, Any]) -> str:
    return _resource_path(task, sd_item).split('/')[1]


def _resource_path(task: Dict[str, Any], sd_item: Dict[str, Any]) -> str:
    resources = task.get('resources') or []
    if resources and sd_item.get('class') != 'Address_Discovery':
        return resources[0]['path']
    return sd_item['path']


def _event_id(task: Dict[str, Any], sd_item: Dict[str, Any]) -> str:
    return quote(_resource_path(task, sd_item).replace('/', '~'), safe='~')


def generate_alt_task_id(task: Dict[str, Any], sd_item: Dict[str, Any]) -> str:
    """Hash of the whole task without credentials, changes whenever any setting changes"""
    if task['provider'] == 'event':
        return _event_id(task, sd_item)
    clean = copy.deepcopy(task)
    clean.pop('ignore', None)
    if clean['provider'] in PROVIDER_OPTIONS:
        clean['providerOptions'].pop(PROVIDER_OPTIONS[clean['provider']][1], None)
    clean['resources'] = sorted(clean.get('resources', []), key=canonicalise)
    return tenant_scoped_id(_owning_tenant(task, sd_item), clean)


def generate_task_id(task: Dict[str, Any], sd_item: Dict[str, Any]) -> str:
    """Hash of the identity values only, stable across credential and interval changes"""
    if task['provider'] == 'event':
        return _event_id(task, sd_item)
    return tenant_scoped_id(_owning_tenant(task, sd_item), task_identity(task))


def create_task(sd_item: Dict[str, Any], tenant_id: str, resources: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Build a discovery worker task.

    Args:
        sd_item: Pool member or Address_Discovery item with addressDiscovery set
        tenant_id: Tenant the discovered nodes are created in
        resources: [{'item': ..., 'path': ...}] for each pool the task feeds

    Returns:
        Task dictionary including its 'id' and 'altId'
    """
    provider = sd_item.get('addressDiscovery')
    update_interval = 0 if provider in ('fqdn', 'static', 'event') else sd_item.get('updateInterval')
    task: Dict[str, Any] = {
        'updateInterval': update_interval,
        'resources': [create_task_resource(resource, sd_item) for resource in resources],
    }
    if provider not in STATIC_PROVIDERS:
        task['nodePrefix'] = f"/{tenant_id}/"
    task.update(create_task_provider(sd_item))
    task['metadata'] = {'configuredBy': 'AS3'}
    task['routeDomain'] = sd_item.get('routeDomain') or 0

    task['altId'] = generate_alt_task_id(task, sd_item)
    task['id'] = generate_task_id(task, sd_item)
    return task


def prepare_task_for_render(task: Dict[str, Any]) -> Dict[str, Any]:
    """Name resources and nodes by position so they render as keyed objects"""
    for index, resource in enumerate(task['resources']):
        resource['name'] = str(index)
    for index, node in enumerate(task['providerOptions'].get('nodes', [])):
        node['name'] = str(index)
    return task
