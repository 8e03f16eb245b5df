"""Test cases for string quoting and path helpers"""
import pytest
from f5_as3_translator.normalize.strings import (quote_string, quote_or_none, escape_tcl, from_camel_case,
                                                 to_camel_case, secret, wrap_string_with_spaces)
from f5_as3_translator.paths import (mcp_path, bigip_path, bigip_path_from_src, minimize_ip, parse_ip_address,
                                     strip_zero_route_domain, default_route_domain, suffixed_name, wildcard_name)


class TestQuoteString:
    """Test cases for quote_string"""

    def test_plain_text_is_wrapped_in_quotes(self):
        assert quote_string('A description') == '"A description"'

    def test_template_placeholders_are_escaped(self):
        """Dollar signs and braces must not be interpreted by the command language"""
        assert quote_string('${x}') == '"\\$\\{x\\}"'

    def test_square_brackets_and_semicolons_are_escaped(self):
        assert quote_string('[a];b') == '"\\[a\\]\\;b"'

    def test_unescaped_quote_gets_backslash(self):
        assert quote_string('say "hi"') == '"say \\"hi\\""'

    def test_question_mark_is_escaped(self):
        assert quote_string('why?') == '"why\\?"'

    def test_quote_or_none_for_empty(self):
        assert quote_or_none('') == 'none'
        assert quote_or_none(None) == 'none'
        assert quote_or_none('none') == 'none'

    def test_quote_or_none_keeps_quoted_value(self):
        assert quote_or_none('"already"') == '"already"'


class TestNameConversion:
    """Test cases for camelCase and dashed name conversion"""

    def test_from_camel_case(self):
        assert from_camel_case('connectionLimit') == 'connection-limit'

    def test_from_camel_case_with_underscore(self):
        assert from_camel_case('tls1_2Enabled') == 'tls1-2-enabled'

    def test_to_camel_case(self):
        assert to_camel_case('slow-ramp-time') == 'slowRampTime'

    def test_escape_tcl_turns_newlines_into_escaped_separators(self):
        assert escape_tcl('a\nb') == 'a\\;b'

    def test_wrap_string_with_spaces(self):
        assert wrap_string_with_spaces('a b') == '"a b"'
        assert wrap_string_with_spaces('ab') == 'ab'


class TestSecret:
    """Test cases for secret decoding"""

    def test_plain_string(self):
        assert secret('password') == 'password'

    def test_ciphertext_is_base64_decoded(self):
        assert secret({'ciphertext': 'c2VjcmV0'}) == 'secret'

    def test_missing_ciphertext(self):
        assert secret({}) == ''
        assert secret(None) == ''


class TestMcpPath:
    """Test cases for appliance path building"""

    def test_application_item(self):
        assert mcp_path('T', 'A', 'pool') == '/T/A/pool'

    def test_tenant_level_item(self):
        assert mcp_path('T', None, '192.0.2.1') == '/T/192.0.2.1'

    def test_dotted_tenant_name_is_opaque(self):
        assert mcp_path('0.0.0.0', 'A', 'item') == '/0.0.0.0/A/item'

    def test_tenant_and_application_folders(self):
        assert mcp_path('T', '', '') == '/T/'
        assert mcp_path('T', 'A', '') == '/T/A/'

    def test_suffixed_name(self):
        assert suffixed_name('vs', 0) == 'vs'
        assert suffixed_name('vs', 2) == 'vs-2-'


class TestBigipPath:
    """Test cases for pointer extraction"""

    def test_string_value(self):
        assert bigip_path_from_src('/Common/http') == '/Common/http'

    def test_bigip_pointer_wins_over_use(self):
        assert bigip_path_from_src({'bigip': '/Common/a', 'use': '/T/A/b'}) == '/Common/a'

    def test_use_pointer(self):
        assert bigip_path_from_src({'use': '/T/A/b'}) == '/T/A/b'

    def test_empty_falls_back_to_default(self):
        assert bigip_path_from_src('', 'fallback') == 'fallback'
        assert bigip_path_from_src(None, 'fallback') == 'fallback'

    def test_bigip_path_reads_key(self):
        assert bigip_path({'pool': {'use': '/T/A/p'}}, 'pool') == '/T/A/p'
        assert bigip_path({}, 'pool', 'none') == 'none'


class TestAddresses:
    """Test cases for address parsing and minimising"""

    def test_minimize_ipv6_keeps_suffixes(self):
        assert minimize_ip('2001:0db8:0000::0001%2/64') == '2001:db8::1%2/64'

    def test_minimize_ipv4_mapped(self):
        assert minimize_ip('::ffff:192.0.2.1') == '::ffff:c000:201'

    def test_minimize_leaves_hostnames(self):
        assert minimize_ip('example.com') == 'example.com'

    def test_strip_zero_route_domain(self):
        assert strip_zero_route_domain('192.0.2.4%0') == '192.0.2.4'
        assert strip_zero_route_domain('192.0.2.4%0/24') == '192.0.2.4/24'
        assert strip_zero_route_domain('192.0.2.4%100') == '192.0.2.4%100'

    def test_parse_host_address(self):
        info = parse_ip_address('192.0.2.10')
        assert info.ip == '192.0.2.10'
        assert info.cidr == '32'
        assert info.netmask == '255.255.255.255'

    def test_parse_cidr_with_route_domain(self):
        info = parse_ip_address('10.0.0.0%2/8')
        assert info.route_domain == '%2'
        assert info.netmask == '255.0.0.0'
        assert info.ip_with_route == '10.0.0.0%2'

    def test_parse_wildcards(self):
        assert parse_ip_address('0.0.0.0').netmask == 'any'
        assert parse_ip_address('::').netmask == 'any6'

    def test_wildcard_name(self):
        assert wildcard_name('0.0.0.0', '%3') == 'any%3'
        assert wildcard_name('::', '') == 'any6'
        assert wildcard_name('192.0.2.1', '') == '192.0.2.1'

    @pytest.mark.parametrize('route_domain,expected', [(None, ''), (0, ''), (5, '%5')])
    def test_default_route_domain(self, route_domain, expected):
        declaration = {'T': {'class': 'Tenant'}}
        if route_domain is not None:
            declaration['T']['defaultRouteDomain'] = route_domain
        assert default_route_domain(declaration, 'T') == expected
