"""Test cases for translator lookup and batch-wide post-processing"""
import pytest
from f5_as3_translator.config_object import ConfigObject, PathUpdate, SnatAddress, TranslationResult
from f5_as3_translator.context import TargetInfo, TranslationContext
from f5_as3_translator.post_processing import (_with_key_updates, apply_path_updates,
                                               create_default_snat_translations)
from f5_as3_translator.registry import TranslatorRegistry
from f5_as3_translator.translators.pool import PoolTranslator


@pytest.fixture
def ctx():
    return TranslationContext(target=TargetInfo(tmos_version='15.1', provisioned_modules=('ltm',)))


class TestRegistry:
    """Test cases for TranslatorRegistry"""

    @pytest.mark.parametrize('declared_class, command', [
        ('Pool', 'ltm pool'),
        ('Service_HTTP', 'ltm virtual'),
        ('TLS_Server', 'ltm profile client-ssl'),
        ('GSLB_Domain', 'gtm wideip'),
        ('Tenant', 'auth partition'),
        ('WAF_Policy', 'asm policy'),
        ('Access_Profile', 'apm profile access'),
        ('DNS_Cache', 'ltm dns cache'),
        ('Bandwidth_Control_Policy', 'net bwc policy'),
        ('Certificate_Validator_OCSP', 'sys crypto cert-validator ocsp'),
    ])
    def test_known_classes(self, declared_class, command):
        translator = TranslatorRegistry().get(declared_class)
        assert translator is not None
        assert translator.declared_class == declared_class
        assert translator.command.startswith(command.split()[0])

    def test_unknown_class(self):
        registry = TranslatorRegistry()
        assert registry.get('Not_A_Class') is None
        assert 'Not_A_Class' not in registry

    def test_declared_classes_are_unique_and_sorted(self):
        registry = TranslatorRegistry()
        assert len(registry) == len(TranslatorRegistry.TRANSLATORS)
        assert registry.declared_classes == sorted(registry.declared_classes)

    def test_custom_translator_set(self):
        registry = TranslatorRegistry([PoolTranslator()])
        assert registry.declared_classes == ['Pool']
        assert 'Service_HTTP' not in registry


class TestPathUpdates:
    """Test cases for rewriting generated paths across a batch"""

    def test_certificate_rewrite_moves_key(self):
        updates = _with_key_updates([PathUpdate('/T/A/cert.crt', '/Common/default.crt')])
        assert PathUpdate('/T/A/cert.key', '/Common/default.key') in updates
        assert len(updates) == 2

    def test_explicit_key_rewrite_wins(self):
        updates = [PathUpdate('/T/A/cert.crt', '/Common/a.crt'), PathUpdate('/T/A/cert.key', '/Common/b.key')]
        assert _with_key_updates(updates) == updates

    def test_non_certificate_rewrite_is_left_alone(self):
        assert _with_key_updates([PathUpdate('/T/A/x', '/T/A/y')]) == [PathUpdate('/T/A/x', '/T/A/y')]

    def test_values_and_set_keys_are_rewritten(self):
        config = ConfigObject('/T/A/tls', 'ltm profile client-ssl', {
            'cert-key-chain': {'set0': {'cert': '/T/A/cert.crt', 'key': '/T/A/cert.key'}},
            'ca-file': 'none',
            'chain-list': ['/T/A/cert.crt'],
            'untrusted': {'/T/A/cert.crt': {}},
        })
        apply_path_updates([config], [PathUpdate('/T/A/cert.crt', '/Common/default.crt')])
        assert config.properties == {
            'cert-key-chain': {'set0': {'cert': '/Common/default.crt', 'key': '/Common/default.key'}},
            'ca-file': 'none',
            'chain-list': ['/Common/default.crt'],
            'untrusted': {'/Common/default.crt': {}},
        }

    def test_result_flags_path_updates(self):
        assert TranslationResult().update_path is False
        result = TranslationResult(path_updates=[PathUpdate('/T/A/b.crt', '/Common/b.crt')])
        assert result.update_path is True
        assert result.primary() is None

    def test_no_updates_returns_configs_unchanged(self):
        config = ConfigObject('/T/A/p', 'ltm pool', {'monitor': {'/Common/http': {}}})
        assert apply_path_updates([config], []) == [config]
        assert config.properties == {'monitor': {'/Common/http': {}}}


class TestDefaultSnatTranslations:
    """Test cases for implicit ltm snat-translation objects"""

    def test_one_translation_per_address(self, ctx):
        addresses = [
            SnatAddress('/T/192.0.2.5', '192.0.2.5'),
            SnatAddress('/T/192.0.2.5', '192.0.2.5'),
        ]
        created = create_default_snat_translations(ctx, [], addresses)
        assert len(created) == 1
        config = created[0]
        assert (config.path, config.command) == ('/T/192.0.2.5', 'ltm snat-translation')
        assert config.properties['address'] == '192.0.2.5'
        assert config.properties['arp'] == 'enabled'
        assert config.properties['enabled'] == {}
        assert config.properties['traffic-group'] == 'default'
        assert config.properties['ip-idle-timeout'] == 'indefinite'
        assert 'disabled' not in config.properties

    def test_declared_translation_is_not_duplicated(self, ctx):
        addresses = [
            SnatAddress('/T/192.0.2.6', '192.0.2.6'),
            SnatAddress('/T/192.0.2.6', '192.0.2.6', is_translation=True),
        ]
        assert create_default_snat_translations(ctx, [], addresses) == []

    def test_existing_config_is_not_duplicated(self, ctx):
        existing = [ConfigObject('/T/192.0.2.7', 'ltm snat-translation')]
        assert create_default_snat_translations(ctx, existing, [SnatAddress('/T/192.0.2.7', '192.0.2.7')]) == []

    def test_first_seen_order(self, ctx):
        addresses = [SnatAddress('/T/192.0.2.9', '192.0.2.9'), SnatAddress('/T/192.0.2.8', '192.0.2.8')]
        created = create_default_snat_translations(ctx, [], addresses)
        assert [config.path for config in created] == ['/T/192.0.2.9', '/T/192.0.2.8']
