"""Test cases for endpoint policies, monitors, iRules and data groups"""
import pytest
from f5_as3_translator.context import TargetInfo, TranslationContext
from f5_as3_translator.translators.endpoint_policy import (EndpointPolicyTranslator, EndpointStrategyTranslator,
                                                           PolicyStringError, convert_to_policy_string)
from f5_as3_translator.translators.monitor import MonitorTranslator
from f5_as3_translator.translators.scripting import DataGroupTranslator, IFileTranslator, IRuleTranslator


@pytest.fixture
def ctx():
    return TranslationContext(target=TargetInfo(tmos_version='15.1', provisioned_modules=('ltm',)))


def translate_item(translator, ctx, item, item_id='item', extra=None):
    application = {'class': 'Application', item_id: item}
    application.update(extra or {})
    declaration = {'class': 'ADC', 'T': {'class': 'Tenant', 'A': application}}
    return translator.translate(ctx, 'T', 'A', item_id, item, declaration)


class TestPolicyString:
    """Test cases for convert_to_policy_string"""

    def test_type_and_event_lead(self):
        action = {'event': 'request', 'name': 'X-Test', 'type': 'httpHeader'}
        assert convert_to_policy_string(action) == 'http-header request name X-Test'

    def test_negated_operand_and_values(self):
        condition = {'type': 'httpHeader', 'event': 'request', 'name': 'X-Test',
                     'all': {'operand': 'does-not-equal', 'values': ['a b', 'c']}}
        assert convert_to_policy_string(condition) == \
            'http-header request name X-Test all not equals values { "a b" c }'

    def test_flags(self):
        assert convert_to_policy_string({'type': 'http', 'enable': True, 'disable': False}) == 'http enable'

    def test_numbers(self):
        assert convert_to_policy_string({'type': 'sslExtension', 'index': 0}) == 'ssl-extension index 0'

    def test_strings_with_spaces_are_quoted(self):
        assert convert_to_policy_string({'type': 'log', 'message': 'hello world'}) == \
            'log message "hello world"'

    def test_tcl_values_are_escaped(self):
        assert convert_to_policy_string({'type': 'log', 'message': 'tcl:[HTTP::uri]'}) == \
            'log message "tcl:\\[HTTP::uri\\]"'

    def test_plain_string_passes_through(self):
        assert convert_to_policy_string('forward select pool /T/A/p') == 'forward select pool /T/A/p'

    def test_unsupported_value(self):
        with pytest.raises(PolicyStringError):
            convert_to_policy_string({'type': 'httpUri', 'path': None})


class TestEndpointPolicy:
    """Test cases for ltm policy objects"""

    @pytest.fixture
    def policy(self):
        return {
            'class': 'Endpoint_Policy',
            'rules': [
                {
                    'name': 'api',
                    'conditions': [{'type': 'httpUri', 'path': {'operand': 'starts-with', 'values': ['/api']}}],
                    'actions': [{'type': 'forward', 'event': 'request', 'select': {'pool': {'use': 'web_pool'}}}],
                },
                {
                    'name': 'block',
                    'actions': [{'type': 'drop', 'event': 'request'}],
                },
            ],
        }

    def test_rules_are_ordered_policy_strings(self, ctx, policy):
        config = translate_item(EndpointPolicyTranslator(), ctx, policy, 'policy',
                                {'web_pool': {'class': 'Pool'}}).configs[0]
        assert config.command == 'ltm policy'
        assert config.properties['strategy'] == '/Common/first-match'
        assert config.properties['rules'] == {
            'api': {
                'ordinal': 0,
                'actions': {'0': {'policy-string': 'forward request select pool /T/A/web_pool'}},
                'conditions': {'0': {'policy-string': 'http-uri path starts-with values { /api }'}},
            },
            'block': {
                'ordinal': 1,
                'actions': {'0': {'policy-string': 'shutdown request'}},
                'conditions': {},
            },
        }

    def test_custom_strategy(self, ctx, policy):
        policy['strategy'] = 'custom'
        policy['customStrategy'] = {'bigip': '/Common/my-strategy'}
        config = translate_item(EndpointPolicyTranslator(), ctx, policy, 'policy',
                                {'web_pool': {'class': 'Pool'}}).configs[0]
        assert config.properties['strategy'] == '/Common/my-strategy'

    def test_waf_action(self, ctx):
        policy = {'class': 'Endpoint_Policy', 'rules': [
            {'name': 'waf', 'actions': [{'type': 'waf', 'event': 'request', 'policy': {'bigip': '/Common/waf'}}]}]}
        config = translate_item(EndpointPolicyTranslator(), ctx, policy, 'policy').configs[0]
        assert config.properties['rules']['waf']['actions']['0']['policy-string'] == \
            'asm request policy /Common/waf enable'

    def test_strategy(self, ctx):
        strategy = {'class': 'Endpoint_Strategy', 'operands': ['http-uri request path starts-with']}
        config = translate_item(EndpointStrategyTranslator(), ctx, strategy, 'strategy').configs[0]
        assert config.command == 'ltm policy-strategy'
        assert config.properties['operands'] == {'0': {'policy-string': 'http-uri request path starts-with'}}


class TestMonitor:
    """Test cases for ltm monitor objects"""

    def test_http_monitor(self, ctx):
        monitor = {'class': 'Monitor', 'monitorType': 'http', 'targetAddress': '192.0.2.50', 'targetPort': 8080,
                   'send': 'GET /', 'receive': '200 OK', 'interval': 5}
        config = translate_item(MonitorTranslator(), ctx, monitor, 'mon').configs[0]
        assert config.command == 'ltm monitor http'
        assert config.properties['destination'] == '192.0.2.50:8080'
        assert config.properties['send'] == '"GET /"'
        assert config.properties['recv'] == '"200 OK"'
        assert config.properties['interval'] == 5
        assert config.properties['username'] == 'none'

    def test_icmp_is_gateway_icmp(self, ctx):
        config = translate_item(MonitorTranslator(), ctx, {'class': 'Monitor', 'monitorType': 'icmp'},
                                'mon').configs[0]
        assert config.command == 'ltm monitor gateway-icmp'
        assert config.properties['destination'] == '*:*'

    def test_ipv6_destination(self, ctx):
        monitor = {'class': 'Monitor', 'monitorType': 'tcp', 'targetAddress': '2001:db8::1', 'targetPort': 80}
        config = translate_item(MonitorTranslator(), ctx, monitor, 'mon').configs[0]
        assert config.properties['destination'] == '2001:db8::1.80'

    def test_unsupported_properties_are_dropped(self, ctx):
        monitor = {'class': 'Monitor', 'monitorType': 'icmp', 'send': 'GET /'}
        config = translate_item(MonitorTranslator(), ctx, monitor, 'mon').configs[0]
        assert 'send' not in config.properties

    def test_external_script_is_uploaded_first(self, ctx):
        monitor = {'class': 'Monitor', 'monitorType': 'external', 'script': 'echo UP'}
        result = translate_item(MonitorTranslator(), ctx, monitor, 'mon')
        assert [(config.path, config.command) for config in result.configs] == [
            ('/T/A/mon-script', 'sys file external-monitor'),
            ('/T/A/mon', 'ltm monitor external'),
        ]
        assert result.configs[0].properties['iControl_post']['send'] == 'echo UP'
        assert result.configs[1].properties['run'] == '/T/A/mon-script'

    def test_passphrase_ignore_changes(self, ctx):
        monitor = {'class': 'Monitor', 'monitorType': 'http', 'username': 'probe',
                   'passphrase': {'ciphertext': 'c2VjcmV0', 'ignoreChanges': True}}
        config = translate_item(MonitorTranslator(), ctx, monitor, 'mon').configs[0]
        assert config.properties['password'] == '"secret"'
        assert config.ignore == ['password']


class TestIRule:
    """Test cases for ltm rule objects"""

    def test_body_is_trimmed(self, ctx):
        rule = {'class': 'iRule', 'iRule': 'when HTTP_REQUEST { \n  log local0. "hi"\n}\n'}
        config = translate_item(IRuleTranslator(), ctx, rule, 'rule').configs[0]
        assert config.command == 'ltm rule'
        assert config.properties['api-anonymous'] == 'when HTTP_REQUEST {\n  log local0. "hi"\n}'

    def test_text_form(self, ctx):
        rule = {'class': 'iRule', 'iRule': {'text': 'when CLIENT_ACCEPTED {}'}}
        config = translate_item(IRuleTranslator(), ctx, rule, 'rule').configs[0]
        assert config.properties['api-anonymous'] == 'when CLIENT_ACCEPTED {}'


class TestIFile:
    """Test cases for ltm ifile objects"""

    def test_inline_content_is_uploaded(self, ctx):
        result = translate_item(IFileTranslator(), ctx, {'class': 'iFile', 'iFile': 'hello'}, 'page')
        assert [(config.path, config.command) for config in result.configs] == [
            ('/T/A/page-ifile', 'sys file ifile'),
            ('/T/A/page', 'ltm ifile'),
        ]
        assert result.configs[1].properties['file-name'] == '/T/A/page-ifile'

    def test_bigip_file(self, ctx):
        result = translate_item(IFileTranslator(), ctx, {'class': 'iFile', 'iFile': {'bigip': '/Common/page'}},
                                'page')
        assert len(result.configs) == 1
        assert result.configs[0].properties['file-name'] == '/Common/page'


class TestDataGroup:
    """Test cases for data groups"""

    def test_internal_ip_records(self, ctx):
        group = {'class': 'Data_Group', 'keyDataType': 'ip', 'records': [
            {'key': '10.0.0.1', 'value': 'a'},
            {'key': '192.0.2.0/24', 'value': ''},
        ]}
        config = translate_item(DataGroupTranslator(), ctx, group, 'dg').configs[0]
        assert config.command == 'ltm data-group internal'
        assert config.properties['type'] == 'ip'
        assert config.properties['records'] == {'10.0.0.1/32': {'data': '"a"'}, '192.0.2.0/24': {}}

    def test_string_keys_with_spaces_are_quoted(self, ctx):
        group = {'class': 'Data_Group', 'keyDataType': 'string', 'records': [{'key': 'a b', 'value': 'x'}]}
        config = translate_item(DataGroupTranslator(), ctx, group, 'dg').configs[0]
        assert list(config.properties['records']) == ['"a b"']

    def test_external_with_url(self, ctx):
        group = {'class': 'Data_Group', 'storageType': 'external', 'keyDataType': 'string',
                 'externalFilePath': 'https://example.com/dg.txt', 'separator': ':='}
        result = translate_item(DataGroupTranslator(), ctx, group, 'dg')
        assert [config.command for config in result.configs] == ['ltm data-group external', 'sys file data-group']
        assert result.configs[0].properties['external-file-name'] == '/T/A/dg'
        assert result.configs[1].properties['source-path'] == 'https://example.com/dg.txt'
        assert result.configs[1].properties['separator'] == '":="'
