"""Test cases for WAF policies, access profiles and per-request access policies"""
import pytest
from f5_as3_translator.context import TargetInfo, TranslationContext
from f5_as3_translator.translators.access import (AccessProfileTranslator, PerRequestAccessPolicyTranslator,
                                                  WAFPolicyTranslator)

UPLOADS = '/mgmt/shared/file-transfer/uploads'


@pytest.fixture
def ctx():
    return TranslationContext(target=TargetInfo(tmos_version='15.1', provisioned_modules=('ltm', 'asm', 'apm')))


def translate_item(translator, ctx, item, item_id):
    declaration = {'class': 'ADC', 'T': {'class': 'Tenant', 'A': {'class': 'Application', item_id: item}}}
    return translator.translate(ctx, 'T', 'A', item_id, item, declaration)


class TestWAFPolicy:
    """Test cases for asm policy"""

    def test_inline_policy_is_uploaded(self, ctx):
        item = {'class': 'WAF_Policy', 'policy': '<policy/>', 'enforcementMode': 'blocking'}
        config = translate_item(WAFPolicyTranslator(), ctx, item, 'waf').configs[0]
        assert (config.path, config.command) == ('/T/A/waf', 'asm policy')
        assert config.properties['enforcementMode'] == 'blocking'
        assert config.properties['iControl_post'] == {
            'reference': '/T/A/waf',
            'path': f"{UPLOADS}/waf.xml",
            'method': 'POST',
            'ctype': 'application/octet-stream',
            'why': 'upload asm policy waf',
            'send': '<policy/>',
            'settings': {'class': 'WAF_Policy', 'policy': '<policy/>', 'enforcementMode': 'blocking'},
        }
        assert 'iControl_postFromRemote' not in config.properties

    def test_url_policy_is_fetched(self, ctx):
        item = {'class': 'WAF_Policy', 'url': {
            'url': 'https://example.com/waf.xml', 'ignoreChanges': True,
            'authentication': {'method': 'bearer-token', 'token': 'abc'}}}
        config = translate_item(WAFPolicyTranslator(), ctx, item, 'waf').configs[0]
        requests = config.properties['iControl_postFromRemote']
        assert requests['get']['path'] == 'https://example.com/waf.xml'
        assert requests['get']['rejectUnauthorized'] is True
        assert requests['post']['reference'] == '/T/A/waf'
        assert requests['post']['path'] == f"{UPLOADS}/waf.xml"
        assert requests['post']['settings']['url'] == 'https://example.com/waf.xml'
        assert config.ignore == ['iControl_postFromRemote.get.authentication.token']

    def test_declaration_keeps_url_object(self, ctx):
        item = {'class': 'WAF_Policy', 'url': {'url': 'https://example.com/waf.xml'}}
        translate_item(WAFPolicyTranslator(), ctx, item, 'waf')
        assert item == {'class': 'WAF_Policy', 'url': {'url': 'https://example.com/waf.xml'}}


class TestAccessProfile:
    """Test cases for apm profile access"""

    def test_imported_at_tenant_level(self, ctx):
        item = {'class': 'Access_Profile', 'url': 'https://example.com/ap.tar.gz', 'enable': True}
        config = translate_item(AccessProfileTranslator(), ctx, item, 'ap').configs[0]
        assert (config.path, config.command) == ('/T/ap', 'apm profile access')
        assert config.properties['enable'] is True
        requests = config.properties['iControl_postFromRemote']
        assert requests['get']['why'] == 'get Access Profile ap from url'
        assert requests['post']['path'] == f"{UPLOADS}/ap.tar.gz"
        assert 'reference' not in requests['post']
        assert 'enable' not in requests['post']['settings']

    def test_disabled_by_default(self, ctx):
        item = {'class': 'Access_Profile', 'url': 'https://example.com/ap.tar'}
        config = translate_item(AccessProfileTranslator(), ctx, item, 'ap').configs[0]
        assert config.properties['enable'] is False
        assert config.properties['iControl_postFromRemote']['post']['path'] == f"{UPLOADS}/ap.tar"


class TestPerRequestAccessPolicy:
    """Test cases for apm policy access-policy"""

    def test_imported_at_tenant_level(self, ctx):
        item = {'class': 'Per_Request_Access_Policy', 'url': 'https://example.com/prap.tar'}
        config = translate_item(PerRequestAccessPolicyTranslator(), ctx, item, 'prap').configs[0]
        assert (config.path, config.command) == ('/T/prap', 'apm policy access-policy')
        assert 'enable' not in config.properties
        requests = config.properties['iControl_postFromRemote']
        assert requests['get']['why'] == 'get Access Policy prap from url'
        assert requests['post']['why'] == 'upload Access Policy prap'
        assert requests['post']['path'] == f"{UPLOADS}/prap.tar"
