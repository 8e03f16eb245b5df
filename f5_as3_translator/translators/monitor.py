"""Monitor → ltm monitor <type>"""
from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import quote_string, secret
from f5_as3_translator.paths import mcp_path, minimize_ip
from f5_as3_translator.translators.base import DOWNLOAD_PATH, REMARK_OR_NONE, Translator

ENABLED = dict(truth='enabled', falsehood='disabled')

MONITOR_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('destination'),
    Prop('interval'),
    Prop('time-until-up', source='timeUntilUp'),
    Prop('timeout'),
    Prop('up-interval', source='upInterval'),
    Prop('adaptive', **ENABLED),
    Prop('adaptive-divergence-type', source='adaptiveDivergenceType'),
    Prop('adaptive-divergence-value', source='adaptiveDivergencePercentage'),
    Prop('adaptive-limit', source='adaptiveLimitMilliseconds'),
    Prop('adaptive-sampling-timespan', source='adaptiveSamplingTimespan'),
    Prop('transparent', **ENABLED),
    Prop('ip-dscp', source='dscp'),
    Prop('recv', source='receive', quoted=True),
    Prop('recv-disable', source='receiveDown', quoted=True),
    Prop('reverse', **ENABLED),
    Prop('send', quoted=True),
    Prop('username', quoted=True),
    Prop('password', source='passphrase', quoted=True),
    Prop('cert', source='clientCertificate'),
    Prop('key'),
    Prop('cipherlist', source='ciphers'),
    Prop('ssl-profile', source='clientTLS'),
    Prop('accept-rcode', source='acceptRCODE'),
    Prop('answer-contains', source='answerContains'),
    Prop('qname', source='queryName'),
    Prop('qtype', source='queryType'),
    Prop('base', quoted=True),
    Prop('filter-ldap', source='filter', quoted=True),
    Prop('security'),
    Prop('mandatory-attributes', source='mandatoryAttributes', truth='yes', falsehood='no'),
    Prop('chase-referrals', source='chaseReferrals', truth='yes', falsehood='no'),
    Prop('count'),
    Prop('database', quoted=True),
    Prop('recv-column', source='receiveColumn', quoted=True),
    Prop('recv-row', source='receiveRow', quoted=True),
    Prop('secret', quoted=True),
    Prop('nas-ip-address', source='nasIpAddress'),
    Prop('filter', source='codesUp'),
    Prop('filter-neg', source='codesDown'),
    Prop('headers', quoted=True),
    Prop('mode'),
    Prop('request', quoted=True),
    Prop('domain'),
    Prop('run'),
    Prop('api-anonymous', source='script'),
    Prop('args', source='arguments', quoted=True),
    Prop('user-defined', source='environmentVariables'),
    Prop('debug', truth='yes', falsehood='no'),
    Prop('filename', quoted=True),
    Prop('failure-interval', source='failureInterval'),
    Prop('failures'),
    Prop('response-time', source='responseTime'),
    Prop('retry-time', source='retryTime'),
)

SCRIPT_UPLOAD_PROPERTIES = (
    Prop('iControl_post', source='iControl_post'),
    Prop('source-path'),
)

_ANY = ['description', 'destination', 'interval', 'time-until-up', 'timeout', 'up-interval']
_ICMP = _ANY + ['adaptive', 'adaptive-divergence-type', 'adaptive-divergence-value', 'adaptive-limit',
                'adaptive-sampling-timespan', 'transparent']
_TCP = _ICMP + ['ip-dscp', 'recv', 'recv-disable', 'reverse', 'send']
_HTTP = _TCP + ['password', 'username']
_MYSQL = _ANY + ['recv', 'send', 'username', 'password', 'count', 'database', 'recv-column', 'recv-row']

# Properties the appliance accepts for each monitor type
ALLOWED_PROPERTIES = {
    'icmp': _ICMP,
    'tcp': _TCP,
    'udp': _TCP,
    'dns': _ICMP + ['accept-rcode', 'answer-contains', 'qname', 'qtype', 'recv', 'reverse'],
    'http': _HTTP,
    'https': _HTTP + ['cert', 'cipherlist', 'key', 'ssl-profile'],
    'http2': _HTTP + ['ssl-profile'],
    'inband': ['description', 'failure-interval', 'failures', 'response-time', 'retry-time'],
    'ldap': _ANY + ['username', 'password', 'base', 'filter-ldap', 'security', 'mandatory-attributes',
                    'chase-referrals'],
    'mysql': _MYSQL,
    'postgresql': _MYSQL,
    'radius': _ANY + ['username', 'password', 'secret', 'nas-ip-address'],
    'sip': _ANY + ['cert', 'cipherlist', 'filter', 'filter-neg', 'headers', 'key', 'mode', 'request'],
    'smtp': _ANY + ['domain'],
    'external': _ANY + ['run', 'api-anonymous', 'args', 'user-defined'],
    'ftp': _ANY + ['username', 'password', 'debug', 'filename', 'mode'],
    'tcp-half-open': _ANY + ['transparent'],
}

# Properties that must be sent as 'none' when unset, per monitor type
NONE_DEFAULTS = {
    'http': ['username'],
    'https': ['username'],
    'http2': ['username'],
    'ldap': ['username', 'base', 'filter-ldap', 'password'],
    'ftp': ['username', 'filename'],
    'dns': ['recv'],
    'mysql': ['recv', 'password', 'database', 'recv-column', 'recv-row', 'send', 'username'],
    'postgresql': ['recv', 'password', 'database', 'recv-column', 'recv-row', 'send', 'username'],
}


class MonitorTranslator(Translator):
    """
    Monitor → ltm monitor <type>, icmp monitors become gateway-icmp.

    The destination is address:port with '*' for unset parts and '.' as the separator
    for IPv6 addresses. Properties the monitor type does not support are dropped.
    External monitors with an inline script upload it first as a 'sys file
    external-monitor' at <path>-script.
    """
    declared_class = 'Monitor'
    command = 'ltm monitor'
    properties = MONITOR_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item_id)
        monitor_type = item.get('monitorType', 'http')
        configs = []

        item.setdefault('ignore', {})
        item['remark'] = item.get('remark') or ''

        target = minimize_ip(item.get('targetAddress'))
        delimiter = '.' if target and ':' in target else ':'
        item['destination'] = f"{target or '*'}{delimiter}{item.get('targetPort') or '*'}"

        if monitor_type in ('https', 'http2', 'sip'):
            certificate = item.get('clientCertificate')
            item['clientCertificate'] = f"{certificate}.crt" if certificate else 'none'
            item['key'] = f"{certificate}.key" if certificate else 'none'
            item['clientTLS'] = item.get('clientTLS') or 'none'
        if monitor_type == 'sip':
            item['codesUp'] = item.get('codesUp') or 'none'
            item['codesDown'] = item.get('codesDown') or 'none'
        if monitor_type == 'external':
            item['arguments'] = item.get('arguments') or 'none'
            if item.get('script'):
                configs.append(self._script_upload(ctx, path, item))

        for key in ('codesUp', 'codesDown'):
            if isinstance(item.get(key), list):
                item[key] = ' '.join(str(code) for code in item[key])

        for key in ('passphrase', 'secret'):
            if key in item:
                ignore_changes = isinstance(item[key], dict) and item[key].get('ignoreChanges') is True
                item[key] = secret(item[key])
                if ignore_changes:
                    item['ignore'][key] = item[key]

        if item.get('adaptiveDivergenceType') == 'absolute':
            item['adaptiveDivergencePercentage'] = item.get('adaptiveDivergenceMilliseconds')

        if item.get('environmentVariables'):
            item['environmentVariables'] = {
                name: quote_string(str(value))
                for name, value in item['environmentVariables'].items()
            }

        config = self.render(ctx, item, path)
        allowed = ALLOWED_PROPERTIES.get(monitor_type, _ANY)
        config.properties = {key: value for key, value in config.properties.items() if key in allowed}
        for key in NONE_DEFAULTS.get(monitor_type, []):
            config.properties[key] = config.properties.get(key) or 'none'

        config.command = f"{self.command} {'gateway-icmp' if monitor_type == 'icmp' else monitor_type}"
        configs.append(config)
        return TranslationResult(configs=configs)

    def _script_upload(self, ctx, path, item):
        script_path = f"{path}-script"
        upload = {
            'iControl_post': self.upload_request(f"{path}-external-monitor", item['script'], 'upload script file',
                                                 upload_name=path),
            'sourcePath': f"{DOWNLOAD_PATH}/{path.replace('/', '_')}",
        }
        item['script'] = ''
        item['run'] = script_path
        return self.render(ctx, upload, script_path, 'sys file external-monitor', SCRIPT_UPLOAD_PROPERTIES)
