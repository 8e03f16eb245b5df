# __init__.py
from f5_as3_translator.translators.base import Translator, GenericTranslator
from f5_as3_translator.translators.core import TenantTranslator, ApplicationTranslator
from f5_as3_translator.translators.service_discovery import create_task
from f5_as3_translator.translators.pool import PoolTranslator, AddressDiscoveryTranslator
from f5_as3_translator.translators.service import ServiceCoreTranslator, ServiceHTTPTranslator
from f5_as3_translator.translators.tls import TLSServerTranslator, TLSClientTranslator
from f5_as3_translator.translators.certificate import CertificateTranslator
from f5_as3_translator.translators.endpoint_policy import EndpointPolicyTranslator, convert_to_policy_string

__all__ = [
    'Translator',
    'GenericTranslator',
    'TenantTranslator',
    'ApplicationTranslator',
    'create_task',
    'PoolTranslator',
    'AddressDiscoveryTranslator',
    'ServiceCoreTranslator',
    'ServiceHTTPTranslator',
    'TLSServerTranslator',
    'TLSClientTranslator',
    'CertificateTranslator',
    'EndpointPolicyTranslator',
    'convert_to_policy_string',
]
