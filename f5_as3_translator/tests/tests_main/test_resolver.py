"""Test cases for pointer resolution"""
import copy
import pytest
from f5_as3_translator.errors import InvalidReferenceError, ReferenceCycleError
from f5_as3_translator.resolver import ReferenceResolver


@pytest.fixture
def declaration():
    """Fixture providing a declaration with pools, aliases and a tenant-level address"""
    return {
        'class': 'ADC',
        'schemaVersion': '3.0.0',
        'Common': {
            'class': 'Tenant',
            'Shared': {
                'class': 'Application',
                'template': 'shared',
                'shared_pool': {'class': 'Pool'},
            },
        },
        'T': {
            'class': 'Tenant',
            'A': {
                'class': 'Application',
                'web_pool': {'class': 'Pool', 'members': [{'servicePort': 80}]},
                'alias': {'use': 'web_pool'},
                'loop_a': {'use': 'loop_b'},
                'loop_b': {'use': 'loop_a'},
                'va': {'class': 'Service_Address', 'virtualAddress': '192.0.2.10'},
                'cert': {'class': 'Certificate', 'chainCA': {'bigip': '/Common/ca-bundle.crt'}},
            },
            'B': {
                'class': 'Application',
                'other_pool': {'class': 'Pool'},
            },
        },
    }


@pytest.fixture
def resolver(declaration):
    return ReferenceResolver(declaration)


class TestAbsoluteSegments:
    """Test cases for converting pointers to absolute segments"""

    def test_item_in_same_application(self, resolver):
        assert resolver.absolute_segments('web_pool', 'T', 'A') == ['T', 'A', 'web_pool']

    def test_item_in_other_application(self, resolver):
        assert resolver.absolute_segments('B/other_pool', 'T', 'A') == ['T', 'B', 'other_pool']

    def test_absolute_pointer(self, resolver):
        assert resolver.absolute_segments('/Common/Shared/shared_pool') == ['Common', 'Shared', 'shared_pool']

    def test_dots_stay_inside_segments(self, resolver):
        assert resolver.absolute_segments('/T/my.app/0.0.0.0') == ['T', 'my.app', '0.0.0.0']

    def test_relative_pointer_without_application(self, resolver):
        with pytest.raises(InvalidReferenceError):
            resolver.absolute_segments('web_pool', 'T', None)

    def test_empty_pointer(self, resolver):
        with pytest.raises(InvalidReferenceError):
            resolver.absolute_segments('', 'T', 'A')


class TestGet:
    """Test cases for fetching declared values"""

    def test_get_item(self, resolver):
        assert resolver.get('/T/A/web_pool')['class'] == 'Pool'

    def test_get_continues_into_properties(self, resolver):
        assert resolver.get('/T/A/cert/chainCA') == {'bigip': '/Common/ca-bundle.crt'}

    def test_get_list_index(self, resolver):
        assert resolver.get('/T/A/web_pool/members/0') == {'servicePort': 80}

    def test_missing_segment_names_the_walked_path(self, resolver):
        with pytest.raises(InvalidReferenceError) as exc_info:
            resolver.get('/T/A/missing/thing')
        assert "'/T/A/missing'" in str(exc_info.value)

    def test_exists(self, resolver):
        assert resolver.exists('web_pool', 'T', 'A')
        assert not resolver.exists('nothing', 'T', 'A')


class TestFollow:
    """Test cases for following use aliases"""

    def test_alias_is_followed_to_target(self, resolver):
        segments, target = resolver.follow('alias', 'T', 'A')
        assert segments == ['T', 'A', 'web_pool']
        assert target['class'] == 'Pool'

    def test_cycle_raises(self, resolver):
        with pytest.raises(ReferenceCycleError) as exc_info:
            resolver.follow('loop_a', 'T', 'A')
        assert exc_info.value.chain == ['/T/A/loop_a', '/T/A/loop_b', '/T/A/loop_a']

    def test_cycle_is_an_invalid_reference(self, resolver):
        with pytest.raises(InvalidReferenceError):
            resolver.follow('loop_b', 'T', 'A')


class TestResolve:
    """Test cases for resolving pointers to appliance paths"""

    def test_use_resolves_to_primary_path(self, resolver):
        assert resolver.resolve({'use': 'web_pool'}, 'T', 'A') == '/T/A/web_pool'

    def test_service_address_lives_at_tenant_root(self, resolver):
        assert resolver.resolve({'use': 'va'}, 'T', 'A') == '/T/va'

    def test_bigip_must_be_absolute(self, resolver):
        assert resolver.resolve({'bigip': '/Common/http'}) == '/Common/http'
        with pytest.raises(InvalidReferenceError):
            resolver.resolve({'bigip': 'http'})

    def test_literal_passes_through(self, resolver):
        assert resolver.resolve('round-robin') == 'round-robin'


class TestAbsolutize:
    """Test cases for rewriting pointers inside an item"""

    def test_use_pointers_become_absolute(self, resolver):
        item = {'pool': {'use': 'alias'}, 'nested': [{'use': 'B/other_pool'}]}
        resolver.absolutize(item, 'T', 'A')
        assert item == {'pool': {'use': '/T/A/web_pool'}, 'nested': [{'use': '/T/B/other_pool'}]}

    def test_dangling_pointer_raises(self, resolver):
        with pytest.raises(InvalidReferenceError):
            resolver.absolutize({'pool': {'use': 'missing'}}, 'T', 'A')

    def test_declaration_is_not_modified(self, declaration, resolver):
        original = copy.deepcopy(declaration)
        resolver.absolutize({'pool': {'use': 'alias'}}, 'T', 'A')
        resolver.resolve({'use': 'alias'}, 'T', 'A')
        assert declaration == original

    def test_owner(self, resolver):
        assert resolver.owner('/T/A/web_pool') == ('T', 'A', 'web_pool')
        assert resolver.owner('/T') == ('T', None, None)
