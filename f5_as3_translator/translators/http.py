"""HTTP family profiles: http, http2, websocket, http-compression, one-connect, web-acceleration"""
import logging

from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import secret
from f5_as3_translator.paths import mcp_path
from f5_as3_translator.translators.base import REMARK_OR_NONE, GenericTranslator, Translator

logger = logging.getLogger(__name__)

ENABLED = dict(truth='enabled', falsehood='disabled')

# Before 15.0 the appliance had no 'sustain' chunking, 15.0 folded 'selective' and 'preserve' into it
SUSTAIN_CHUNKING_VERSION = '15.0'
PRE_SUSTAIN_DEFAULTS = {'requestChunking': 'preserve', 'responseChunking': 'selective'}

ENFORCEMENT_PROPERTIES = (
    Prop('allow-ws-header-name', source='allowBlankSpaceAfterHeaderName', min_version='15.0', **ENABLED),
    Prop('excess-client-headers', source='excessClientHeaders'),
    Prop('excess-server-headers', source='excessServerHeaders'),
    Prop('known-methods', source='knownMethods', extend='set'),
    Prop('max-header-count', source='maxHeaderCount'),
    Prop('max-header-size', source='maxHeaderSize'),
    Prop('max-requests', source='maxRequests'),
    Prop('oversize-client-headers', source='oversizeClientHeaders'),
    Prop('oversize-server-headers', source='oversizeServerHeaders'),
    Prop('pipeline', source='pipelineAction'),
    Prop('rfc-compliance', source='enforceRFCCompliance', min_version='15.0', **ENABLED),
    Prop('truncated-redirects', source='truncatedRedirects', **ENABLED),
    Prop('unknown-method', source='unknownMethodAction'),
)

EXPLICIT_PROXY_PROPERTIES = (
    Prop('bad-request-message', source='badRequestMessage', quoted=True),
    Prop('bad-response-message', source='badResponseMessage', quoted=True),
    Prop('connect-error-message', source='connectErrorMessage', quoted=True),
    Prop('default-connect-handling', source='defaultConnectAction'),
    Prop('dns-error-message', source='dnsErrorMessage', quoted=True),
    Prop('dns-resolver', source='resolver'),
    Prop('host-names', source='doNotProxyHosts', extend='set'),
    Prop('ipv6', truth='yes', falsehood='no'),
    Prop('route-domain', source='routeDomain'),
    Prop('tunnel-name', source='tunnelName'),
)

HSTS_PROPERTIES = (
    Prop('include-subdomains', source='includeSubdomains', **ENABLED),
    Prop('maximum-age', source='period'),
    Prop('mode', source='insert', **ENABLED),
    Prop('preload', min_version='15.1', **ENABLED),
)

HTTP_PROFILE_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('accept-xff', source='trustXFF', **ENABLED),
    Prop('encrypt-cookie-secret', source='cookiePassphrase'),
    Prop('encrypt-cookies', source='encryptCookies', extend='set'),
    Prop('enforcement', extend='object', sub=ENFORCEMENT_PROPERTIES),
    Prop('explicit-proxy', source='explicitProxy', extend='object', sub=EXPLICIT_PROXY_PROPERTIES),
    Prop('fallback-host', source='fallbackRedirect'),
    Prop('fallback-status-codes', source='fallbackStatusCodes', extend='set'),
    Prop('header-erase', source='whiteOutHeader', quoted=True),
    Prop('header-insert', source='insertHeader', quoted=True),
    Prop('hsts', extend='object', sub=HSTS_PROPERTIES),
    Prop('insert-xforwarded-for', source='xForwardedFor', **ENABLED),
    Prop('oneconnect-transformations', source='multiplexTransformations', **ENABLED),
    Prop('proxy-type', source='proxyType', default='reverse'),
    Prop('redirect-rewrite', source='rewriteRedirects'),
    Prop('request-chunking', source='requestChunking'),
    Prop('response-chunking', source='responseChunking'),
    Prop('response-headers-permitted', source='allowedResponseHeaders', extend='set'),
    Prop('server-agent-name', source='serverHeaderValue', quoted=True),
    Prop('via-host-name', source='viaHost'),
    Prop('via-request', source='viaRequest'),
    Prop('via-response', source='viaResponse'),
    Prop('xff-alternative-names', source='otherXFF', extend='set'),
)

WEBSOCKET_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('compress-mode', source='compressMode', min_version='16.1'),
    Prop('compression', min_version='16.1', **ENABLED),
    Prop('masking'),
    Prop('no-delay', source='noDelay', min_version='16.1', **ENABLED),
    Prop('window-bits', source='maximumWindowSize', min_version='16.1'),
)

PROXY_CONNECT_PROPERTIES = (
    Prop('default-state', source='defaultState', **ENABLED),
)

HTTP2_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('activation-modes', source='activationMode', extend='set', transform=lambda value: [value]),
    Prop('concurrent-streams-per-connection', source='concurrentStreamsPerConnection'),
    Prop('connection-idle-timeout', source='connectionIdleTimeout'),
    Prop('enforce-tls-requirements', source='enforceTlsRequirements', **ENABLED),
    Prop('frame-size', source='frameSize'),
    Prop('header-table-size', source='headerTableSize'),
    Prop('include-content-length', source='includeContentLength', **ENABLED),
    Prop('insert-header', source='insertHeader', **ENABLED),
    Prop('insert-header-name', source='insertHeaderName', quoted=True),
    Prop('receive-window', source='receiveWindow'),
    Prop('write-size', source='writeSize'),
)

HTTP_COMPRESS_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('allow-http-10', source='allowHTTP10', **ENABLED),
    Prop('browser-workarounds', source='allowBrowserWorkarounds', **ENABLED),
    Prop('buffer-size', source='bufferSize'),
    Prop('content-type-exclude', source='contentTypeExclude'),
    Prop('content-type-include', source='contentTypeInclude'),
    Prop('cpu-saver', source='cpuSaver', **ENABLED),
    Prop('cpu-saver-high', source='cpuSaverHigh'),
    Prop('cpu-saver-low', source='cpuSaverLow'),
    Prop('gzip-level', source='gzipLevel'),
    Prop('gzip-memory-level', source='gzipMemory'),
    Prop('gzip-window-size', source='gzipWindowSize'),
    Prop('keep-accept-encoding', source='keepAcceptEncoding', **ENABLED),
    Prop('method-prefer', source='selectionMethod'),
    Prop('min-size', source='minimumSize'),
    Prop('uri-exclude', source='uriExclude'),
    Prop('uri-include', source='uriInclude'),
    Prop('vary-header', source='varyHeader', **ENABLED),
)

MULTIPLEX_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('idle-timeout-override', source='idleTimeoutOverride'),
    Prop('limit-type', source='connectionLimitEnforcement'),
    Prop('max-age', source='maxConnectionAge'),
    Prop('max-reuse', source='maxConnectionReuse'),
    Prop('max-size', source='maxConnections'),
    Prop('share-pools', source='sharePools', **ENABLED),
    Prop('source-mask', source='sourceMask', default='any'),
)

HTTP_ACCELERATION_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('cache-aging-rate', source='agingRate'),
    Prop('cache-client-cache-control-mode', source='ignoreHeaders'),
    Prop('cache-insert-age-header', source='insertAgeHeader', **ENABLED),
    Prop('cache-max-age', source='maximumAge'),
    Prop('cache-max-entries', source='maximumEntries'),
    Prop('cache-object-max-size', source='maximumObjectSize'),
    Prop('cache-object-min-size', source='minimumObjectSize'),
    Prop('cache-size', source='cacheSize'),
    Prop('cache-uri-exclude', source='uriExcludeList', extend='set', quoted=True),
    Prop('cache-uri-include', source='uriIncludeList', extend='set', quoted=True),
    Prop('cache-uri-include-override', source='uriIncludeOverrideList', extend='set', quoted=True),
    Prop('cache-uri-pinned', source='uriPinnedList', extend='set', quoted=True),
    Prop('metadata-cache-max-size', source='metadataMaxSize'),
)


def quoted_list(values) -> str:
    """['a', 'b c'] → '"a" "b c"', the form the appliance keeps include/exclude lists in"""
    if not values:
        return ''
    return '"' + '" "'.join(values) + '"'


def next_power_of_two(value: int) -> int:
    power = 1
    while power < value:
        power *= 2
    return power


class HTTPProfileTranslator(Translator):
    """
    HTTP_Profile → ltm profile http.

    Also emits the websocket profile the deprecated webSocketsEnabled flag implies, named
    f5_appsvcs_<masking>, and an http-proxy-connect profile f5_appsvcs_<item>_proxyConnect.
    """
    declared_class = 'HTTP_Profile'
    command = 'ltm profile http'
    properties = HTTP_PROFILE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        configs = []
        item.setdefault('ignore', {})
        item['allowedResponseHeaders'] = item.get('allowedResponseHeaders') or []
        item['encryptCookies'] = item.get('encryptCookies') or []

        if item.get('cookiePassphrase') is not None:
            ignore_changes = isinstance(item['cookiePassphrase'], dict) and item['cookiePassphrase'].get('ignoreChanges')
            item['cookiePassphrase'] = secret(item['cookiePassphrase'])
            if ignore_changes:
                item['ignore']['cookiePassphrase'] = item['cookiePassphrase']

        if item.get('proxyType') == 'explicit':
            item['explicitProxy'] = self._explicit_proxy(item)

        item['fallbackRedirect'] = item.get('fallbackRedirect') or ''
        item['fallbackStatusCodes'] = [str(code) for code in item.get('fallbackStatusCodes') or []]
        header = item.get('insertHeader')
        if isinstance(header, dict) and 'name' in header and 'value' in header:
            item['insertHeader'] = f"{header['name']}: {header['value']}"
        else:
            item['insertHeader'] = ''
        item['otherXFF'] = item.get('otherXFF') or []
        item['remark'] = item.get('remark') or ''
        item['rewriteRedirects'] = str(item.get('rewriteRedirects', 'none')).replace('addresses', 'nodes')
        item['whiteOutHeader'] = item.get('whiteOutHeader') or ''
        item['viaHost'] = item.get('viaHost') or ''
        item['hsts'] = {
            'insert': item.get('hstsInsert'),
            'period': item.get('hstsPeriod'),
            'includeSubdomains': item.get('hstsIncludeSubdomains'),
            'preload': item.get('hstsPreload'),
        }

        enforcement = {source: item.get(source) for source in (
            'allowBlankSpaceAfterHeaderName', 'enforceRFCCompliance', 'excessClientHeaders',
            'excessServerHeaders', 'knownMethods', 'maxHeaderCount', 'maxHeaderSize', 'maxRequests',
            'oversizeClientHeaders', 'oversizeServerHeaders', 'pipelineAction', 'truncatedRedirects',
            'unknownMethodAction')}
        if any(value is not None for value in enforcement.values()):
            item['enforcement'] = enforcement

        self._chunking(ctx, item)
        configs.append(self.render(ctx, item, mcp_path(tenant_id, app_id, item_id)))

        if not item.get('profileWebSocket') and item.get('webSocketsEnabled'):
            websocket = {'remark': 'none', 'masking': item.get('webSocketMasking')}
            if ctx.at_least('16.1'):
                websocket.update(compressMode='preserved', compression=True, maximumWindowSize=10, noDelay=True)
            path = mcp_path(tenant_id, app_id, f"f5_appsvcs_{item.get('webSocketMasking')}")
            configs.append(self.render(ctx, websocket, path, 'ltm profile websocket', WEBSOCKET_PROPERTIES))

        if item.get('proxyConnectEnabled'):
            path = mcp_path(tenant_id, app_id, f"f5_appsvcs_{item_id}_proxyConnect")
            configs.append(self.render(ctx, {'defaultState': True}, path, 'ltm profile http-proxy-connect',
                                       PROXY_CONNECT_PROPERTIES))
        return TranslationResult(configs=configs)

    @staticmethod
    def _explicit_proxy(item):
        tunnel = item.get('tunnelName') or ''
        if '/' not in tunnel:
            tunnel = f"/Common/{tunnel}"
        return {
            'badRequestMessage': item.get('badRequestMessage') or '',
            'badResponseMessage': item.get('badResponseMessage') or '',
            'connectErrorMessage': item.get('connectErrorMessage') or '',
            'defaultConnectAction': item.get('defaultConnectAction') or '',
            'dnsErrorMessage': item.get('dnsErrorMessage') or '',
            'doNotProxyHosts': item.get('doNotProxyHosts') or [],
            'ipv6': item.get('ipv6', False),
            'resolver': item.get('resolver'),
            'routeDomain': f"/Common/{item.get('routeDomain', 0)}",
            'tunnelName': tunnel,
        }

    @staticmethod
    def _chunking(ctx, item):
        """Map chunking modes onto the ones the target version knows"""
        if ctx.at_least(SUSTAIN_CHUNKING_VERSION):
            for key in ('responseChunking', 'requestChunking'):
                if item.get(key) in ('selective', 'preserve'):
                    item[key] = 'sustain'
        else:
            for key, fallback in PRE_SUSTAIN_DEFAULTS.items():
                if item.get(key) == 'sustain':
                    item[key] = fallback


class HTTPCompressTranslator(Translator):
    """HTTP_Compress → ltm profile http-compression"""
    declared_class = 'HTTP_Compress'
    command = 'ltm profile http-compression'
    properties = HTTP_COMPRESS_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['contentTypeExclude'] = quoted_list(item.get('contentTypeExcludes'))
        item['contentTypeInclude'] = quoted_list(item.get('contentTypeIncludes'))
        item['uriExclude'] = quoted_list(item.get('uriExcludes'))
        item['uriInclude'] = quoted_list(item.get('uriIncludes'))
        # gzip sizes are powers of two on the appliance
        for key in ('gzipMemory', 'gzipWindowSize'):
            if item.get(key):
                item[key] = next_power_of_two(item[key])
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


HTTP2_PROFILE = GenericTranslator('HTTP2_Profile', 'ltm profile http2', HTTP2_PROPERTIES)
WEBSOCKET_PROFILE = GenericTranslator('WebSocket_Profile', 'ltm profile websocket', WEBSOCKET_PROPERTIES)
MULTIPLEX_PROFILE = GenericTranslator('Multiplex_Profile', 'ltm profile one-connect', MULTIPLEX_PROPERTIES)
HTTP_ACCELERATION_PROFILE = GenericTranslator('HTTP_Acceleration_Profile', 'ltm profile web-acceleration',
                                              HTTP_ACCELERATION_PROPERTIES)
