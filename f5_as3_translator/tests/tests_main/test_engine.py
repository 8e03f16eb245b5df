"""Test cases for whole-declaration translation"""
import logging
import pytest
from f5_as3_translator.config_object import ConfigObject, TranslationResult
from f5_as3_translator.context import TargetInfo, TranslationContext
from f5_as3_translator.engine import TranslationBatch, tenant_order, translate_declaration, translate_tenant
from f5_as3_translator.errors import DeclarationModifiedError, InvalidReferenceError
from f5_as3_translator.registry import TranslatorRegistry
from f5_as3_translator.translators.base import Translator
from f5_as3_translator.translators.core import ApplicationTranslator, TenantTranslator
from f5_as3_translator.translators.pool import PoolTranslator


class BrokenPoolTranslator(Translator):
    declared_class = 'Pool'
    command = 'ltm pool'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        raise InvalidReferenceError(f"broken {item_id}")


class MutatingPoolTranslator(PoolTranslator):
    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        declaration[tenant_id][app_id][item_id]['touched'] = True
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


@pytest.fixture
def ctx():
    return TranslationContext(target=TargetInfo(tmos_version='15.1', provisioned_modules=('ltm',)))


@pytest.fixture
def declaration():
    """Fixture providing a tenant declared before Common plus disabled and empty tenants"""
    return {
        'class': 'ADC',
        'schemaVersion': '3.0.0',
        'T': {
            'class': 'Tenant',
            'A': {
                'class': 'Application',
                'web': {'class': 'Pool'},
                'snat': {'class': 'SNAT_Pool', 'snatAddresses': ['192.0.2.5']},
                'future': {'class': 'Some_Future_Class'},
            },
            'off': {
                'class': 'Application',
                'enable': False,
                'p': {'class': 'Pool'},
            },
        },
        'D': {
            'class': 'Tenant',
            'enable': False,
            'A': {'class': 'Application', 'p': {'class': 'Pool'}},
        },
        'E': {'class': 'Tenant'},
        'Common': {
            'class': 'Tenant',
            'Shared': {
                'class': 'Application',
                'template': 'shared',
                'p': {'class': 'Pool'},
            },
        },
    }


class TestTranslationBatch:
    """Test cases for TranslationBatch"""

    def test_wideip_path_carries_record_type(self):
        batch = TranslationBatch()
        batch.add(ConfigObject('/T/A/example.com', 'gtm wideip a'))
        batch.add(ConfigObject('/T/A/example.com', 'gtm wideip aaaa'))
        assert [config.path for config in batch] == ['/T/A/example.com a', '/T/A/example.com aaaa']

    def test_same_path_replaces_in_place(self):
        batch = TranslationBatch()
        batch.add(ConfigObject('/T/A/x', 'ltm pool', {'a': 1}))
        batch.add(ConfigObject('/T/A/y', 'ltm pool'))
        batch.add(ConfigObject('/T/A/x', 'ltm pool', {'a': 2}))
        assert [config.path for config in batch] == ['/T/A/x', '/T/A/y']
        assert batch['/T/A/x'].properties == {'a': 2}

    def test_topology_records_merge(self):
        batch = TranslationBatch()
        record = {'source': 'subnet 10.0.0.0/8', 'destination': 'pool /Common/gp', 'order': 1}
        batch.add(ConfigObject('/Common/topology/records', 'gtm topology', {'records': {'0': dict(record)}}))
        batch.add(ConfigObject('/Common/topology/records', 'gtm topology',
                               {'records': {'0': dict(record, source='country US')}}))
        records = batch['/Common/topology/records'].properties['records']
        assert list(records) == ['0', '1']
        assert records['1']['source'] == 'country US'
        assert [records['0']['order'], records['1']['order']] == [1, 2]

    def test_global_settings_merge(self):
        batch = TranslationBatch()
        command = 'gtm global-settings load-balancing'
        batch.add(ConfigObject('/Common/global-settings', command, {'topology-longest-match': 'no'}))
        batch.add(ConfigObject('/Common/global-settings', command, {'other': 'yes'}))
        assert len(batch) == 1
        assert batch['/Common/global-settings'].properties == {'topology-longest-match': 'no', 'other': 'yes'}

    def test_result_metadata_is_kept(self):
        batch = TranslationBatch()
        batch.extend(TranslationResult(metadata={'gslb_pool': {'needs_wait': True}}))
        batch.extend(TranslationResult(configs=[ConfigObject('/T/A/p', 'ltm pool')]))
        assert batch.metadata == {'gslb_pool': {'needs_wait': True}}

    def test_as_dict(self):
        batch = TranslationBatch()
        batch.add(ConfigObject('/T/A/p', 'ltm pool', {'monitor': {}}, ['members']))
        assert batch.as_dict() == {'/T/A/p': {'command': 'ltm pool', 'properties': {'monitor': {}},
                                              'ignore': ['members']}}
        assert '/T/A/p' in batch


class TestDeclarationTranslation:
    """Test cases for translate_declaration"""

    def test_tenant_order_puts_common_first(self, declaration):
        assert tenant_order(declaration) == ['Common', 'T', 'D', 'E']

    def test_emission_order(self, ctx, declaration):
        batch = translate_declaration(declaration, ctx)
        assert [(config.path, config.command) for config in batch] == [
            ('/Common/Shared/', 'sys folder'),
            ('/Common/Shared/p', 'ltm pool'),
            ('/T/A/', 'sys folder'),
            ('/T/A/web', 'ltm pool'),
            ('/T/A/snat', 'ltm snatpool'),
            ('/T/', 'auth partition'),
            ('/T/192.0.2.5', 'ltm snat-translation'),
        ]

    def test_disabled_and_empty_tenants_produce_nothing(self, ctx, declaration):
        paths = [config.path for config in translate_declaration(declaration, ctx)]
        assert not any(path.startswith('/D/') for path in paths)
        assert '/E/' not in paths
        assert '/T/off/' not in paths

    def test_unknown_class_is_skipped(self, ctx, declaration, caplog):
        with caplog.at_level(logging.DEBUG, logger='f5_as3_translator.engine'):
            batch = translate_declaration(declaration, ctx)
        assert '/T/A/future' not in batch
        assert 'No translator for class Some_Future_Class' in caplog.text

    def test_declaration_is_not_modified(self, ctx, declaration):
        before = repr(declaration)
        translate_declaration(declaration, ctx)
        assert repr(declaration) == before

    def test_modified_declaration_is_detected(self, ctx, declaration):
        registry = TranslatorRegistry([TenantTranslator(), ApplicationTranslator(), MutatingPoolTranslator()])
        with pytest.raises(DeclarationModifiedError):
            translate_declaration(declaration, ctx, registry)

    def test_first_failure_is_raised(self, ctx, declaration):
        registry = TranslatorRegistry([TenantTranslator(), ApplicationTranslator(), BrokenPoolTranslator()])
        with pytest.raises(InvalidReferenceError, match='broken p'):
            translate_declaration(declaration, ctx, registry)

    def test_failures_are_collected(self, declaration, caplog):
        ctx = TranslationContext(collect_errors=True)
        registry = TranslatorRegistry([TenantTranslator(), ApplicationTranslator(), BrokenPoolTranslator()])
        with caplog.at_level(logging.ERROR, logger='f5_as3_translator.engine'):
            batch = translate_declaration(declaration, ctx, registry)

        assert [(tenant, app, item) for tenant, app, item, _ in batch.errors] == [
            ('Common', 'Shared', 'p'),
            ('T', 'A', 'web'),
        ]
        assert all(isinstance(error, InvalidReferenceError) for *_, error in batch.errors)
        assert '/T/A/' in batch
        assert 'Failed to translate /T/A/web' in caplog.text

    def test_single_tenant(self, ctx, declaration):
        batch = translate_tenant(declaration, 'T', ctx)
        assert [config.path for config in batch] == ['/T/A/', '/T/A/web', '/T/A/snat', '/T/', '/T/192.0.2.5']
