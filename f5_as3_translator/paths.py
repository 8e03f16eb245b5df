"""Path, naming and address helpers shared by the translators"""
import ipaddress
import re
from collections import namedtuple
from typing import Any, Dict, Optional

IpInfo = namedtuple('IpInfo', ['ip', 'route_domain', 'cidr', 'netmask', 'ip_with_route'])

ADDRESS_PATTERN = re.compile(r'^(?P<ip>[^%/]*)(?P<rd>%\d+)?(?:/(?P<cidr>\d+))?$')


def mcp_path(tenant_id: str, app_id: Optional[str], item_id: str) -> str:
    """
    Build the appliance path for an item.

    Tenant and application names are opaque segments, a tenant named '0.0.0.0' is
    never treated as an address.

    Examples:
        mcp_path('T', 'A', 'pool') → '/T/A/pool'
        mcp_path('T', None, '192.0.2.1') → '/T/192.0.2.1'
    """
    if app_id:
        return '/'.join(['', tenant_id, app_id, item_id])
    return '/'.join(['', tenant_id, item_id])


def suffixed_name(base: str, index: int) -> str:
    """The first object keeps the bare name, later ones get -1-, -2-, ..."""
    return base if index == 0 else f"{base}-{index}-"


def bigip_path_from_src(src: Any, default: Optional[str] = None) -> Optional[str]:
    """
    Extract a path from a declaration value that may be a string or a pointer object.

    A string is used as-is, a mapping supplies its 'bigip' key if present and its 'use'
    key otherwise. Empty values fall back to default.
    """
    if isinstance(src, str):
        return src if src != '' else default
    if not isinstance(src, dict):
        return default
    key = 'bigip' if 'bigip' in src else 'use'
    value = src.get(key)
    return value if value not in ('', None) else default


def bigip_path(item: Dict[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    """bigip_path_from_src applied to item[key]"""
    return bigip_path_from_src(item.get(key), default)


def default_route_domain(declaration: Dict[str, Any], tenant_id: str) -> str:
    """
    Get the tenant's default route domain as an address suffix.

    Returns:
        '' for route domain 0 or when unset, otherwise '%N'
    """
    tenant = declaration.get(tenant_id) or {}
    route_domain = tenant.get('defaultRouteDomain') if isinstance(tenant, dict) else None
    if route_domain in (None, 0, '0', ''):
        return ''
    return f"%{route_domain}"


def strip_zero_route_domain(address: str) -> str:
    """Drop an explicit %0 suffix, route domain 0 is implicit on the appliance"""
    return re.sub(r'%0(?=$|/)', '', address)


def is_ipv6(address: str) -> bool:
    """Check the address part (before any %rd or /cidr) for IPv6 form"""
    return ':' in address.split('%')[0].split('/')[0]


def _minimise_bare_ip(ip: str) -> str:
    try:
        return ipaddress.ip_address(ip).compressed
    except ValueError:
        return ip


def minimize_ip(address: Optional[str]) -> Optional[str]:
    """
    Compress the IP part of an address while keeping any %rd and /cidr suffixes.

    Examples:
        minimize_ip('2001:0db8:0000::0001%2/64') → '2001:db8::1%2/64'
        minimize_ip('::ffff:192.0.2.1') → '::ffff:c000:201'
    """
    if not address:
        return address
    match = ADDRESS_PATTERN.match(address)
    if not match:
        return address
    result = _minimise_bare_ip(match.group('ip'))
    if match.group('rd'):
        result += match.group('rd')
    if match.group('cidr') is not None:
        result += f"/{match.group('cidr')}"
    return result


def _netmask(ip: str, cidr: int) -> str:
    if is_ipv6(ip):
        if cidr == 0:
            return 'any6'
        return str(ipaddress.IPv6Network(f"::/{cidr}").netmask.compressed)
    if cidr == 0:
        return 'any'
    return str(ipaddress.IPv4Network(f"0.0.0.0/{cidr}").netmask)


def parse_ip_address(address: Optional[str]) -> IpInfo:
    """
    Parse 'ip[%rd][/cidr]' into its parts.

    Wildcard addresses (0.0.0.0 and ::) without an explicit prefix length get the
    wildcard masks 'any' and 'any6'. Other addresses without a prefix length are hosts.

    Returns:
        IpInfo(ip, route_domain, cidr, netmask, ip_with_route) where route_domain is
        '' or '%N' and cidr is a string
    """
    if not address:
        return IpInfo('', '', '', '', '')
    match = ADDRESS_PATTERN.match(address.strip())
    if not match:
        return IpInfo(address, '', '', '', address)

    ip = _minimise_bare_ip(match.group('ip'))
    route_domain = match.group('rd') or ''
    cidr = match.group('cidr')
    if cidr is None:
        if ip in ('0.0.0.0', '::'):
            cidr = '0'
        else:
            cidr = '128' if is_ipv6(ip) else '32'
    netmask = _netmask(ip, int(cidr))
    return IpInfo(ip, route_domain, cidr, netmask, f"{ip}{route_domain}")


def wildcard_name(ip: str, route_domain: str) -> str:
    """Name used for virtual addresses, wildcards become any/any6"""
    if ip.startswith('0.0.0.0'):
        return f"any{route_domain}"
    if ip == '::':
        return f"any6{route_domain}"
    return f"{ip}{route_domain}"
