from typing import Dict, Iterable, Optional

from f5_as3_translator.translators.base import Translator
from f5_as3_translator.translators.access import (
    AccessProfileTranslator,
    PerRequestAccessPolicyTranslator,
    WAFPolicyTranslator,
)
from f5_as3_translator.translators.certificate import CABundleTranslator, CertificateTranslator
from f5_as3_translator.translators.core import ApplicationTranslator, TenantTranslator
from f5_as3_translator.translators.dns import (
    DNS_LOGGING_PROFILE,
    DNS_NAMESERVER,
    DNSCacheTranslator,
    DNSProfileTranslator,
    DNSTSIGKeyTranslator,
    DNSZoneTranslator,
)
from f5_as3_translator.translators.endpoint_policy import EndpointPolicyTranslator, EndpointStrategyTranslator
from f5_as3_translator.translators.firewall import (
    FIREWALL_PORT_LIST,
    FIREWALL_RULE_LIST,
    NET_ADDRESS_LIST,
    NET_PORT_LIST,
    FirewallAddressListTranslator,
    FirewallPolicyTranslator,
    IdleTimeoutPolicyTranslator,
    NATPolicyTranslator,
    NATSourceTranslationTranslator,
)
from f5_as3_translator.translators.gslb import (
    GSLBDataCenterTranslator,
    GSLBDomainTranslator,
    GSLBMonitorTranslator,
    GSLBPoolTranslator,
    GSLBProberPoolTranslator,
    GSLBServerTranslator,
    GSLBTopologyRecordsTranslator,
    GSLBTopologyRegionTranslator,
)
from f5_as3_translator.translators.http import (
    HTTP2_PROFILE,
    HTTP_ACCELERATION_PROFILE,
    MULTIPLEX_PROFILE,
    WEBSOCKET_PROFILE,
    HTTPCompressTranslator,
    HTTPProfileTranslator,
)
from f5_as3_translator.translators.monitor import MonitorTranslator
from f5_as3_translator.translators.pool import (
    AddressDiscoveryTranslator,
    PoolTranslator,
    SNATPoolTranslator,
    SNATTranslationTranslator,
)
from f5_as3_translator.translators.profiles import (
    HTML_PROFILE,
    STATISTICS_PROFILE,
    TFTP_PROFILE,
    AdaptProfileTranslator,
    AnalyticsProfileTranslator,
    BandwidthControlPolicyTranslator,
    FTPProfileTranslator,
    ICAPProfileTranslator,
    L4ProfileTranslator,
    PersistTranslator,
    RewriteProfileTranslator,
    StreamProfileTranslator,
    TCPProfileTranslator,
    TrafficLogProfileTranslator,
    UDPProfileTranslator,
)
from f5_as3_translator.translators.scripting import (
    DataGroupTranslator,
    GSLBIRuleTranslator,
    IFileTranslator,
    IRuleTranslator,
)
from f5_as3_translator.translators.security import (
    DOSProfileTranslator,
    LogDestinationTranslator,
    LogPublisherTranslator,
    ProtocolInspectionProfileTranslator,
    SecurityLogProfileTranslator,
)
from f5_as3_translator.translators.service import (
    ServiceAddressTranslator,
    ServiceCoreTranslator,
    ServiceForwardingTranslator,
    ServiceGenericTranslator,
    ServiceHTTPSTranslator,
    ServiceHTTPTranslator,
    ServiceL4Translator,
    ServiceSCTPTranslator,
    ServiceTCPTranslator,
    ServiceUDPTranslator,
)
from f5_as3_translator.translators.tls import (
    CertificateValidatorOCSPTranslator,
    CipherGroupTranslator,
    CipherRuleTranslator,
    TLSClientTranslator,
    TLSServerTranslator,
)


class TranslatorRegistry:
    """Maps a declared 'class' string to the translator that handles it"""

    # Translators for every supported declaration class
    TRANSLATORS = (
        TenantTranslator(),
        ApplicationTranslator(),
        # Pools and services
        PoolTranslator(),
        AddressDiscoveryTranslator(),
        SNATPoolTranslator(),
        SNATTranslationTranslator(),
        ServiceAddressTranslator(),
        ServiceCoreTranslator(),
        ServiceTCPTranslator(),
        ServiceHTTPTranslator(),
        ServiceHTTPSTranslator(),
        ServiceUDPTranslator(),
        ServiceForwardingTranslator(),
        ServiceSCTPTranslator(),
        ServiceL4Translator(),
        ServiceGenericTranslator(),
        MonitorTranslator(),
        # Profiles
        HTTPProfileTranslator(),
        HTTPCompressTranslator(),
        HTTP2_PROFILE,
        WEBSOCKET_PROFILE,
        MULTIPLEX_PROFILE,
        HTTP_ACCELERATION_PROFILE,
        TCPProfileTranslator(),
        UDPProfileTranslator(),
        L4ProfileTranslator(),
        PersistTranslator(),
        StreamProfileTranslator(),
        FTPProfileTranslator(),
        TFTP_PROFILE,
        STATISTICS_PROFILE,
        TrafficLogProfileTranslator(),
        ICAPProfileTranslator(),
        AdaptProfileTranslator(),
        AnalyticsProfileTranslator(),
        HTML_PROFILE,
        RewriteProfileTranslator(),
        BandwidthControlPolicyTranslator(),
        # DNS
        DNSProfileTranslator(),
        DNSCacheTranslator(),
        DNSZoneTranslator(),
        DNS_NAMESERVER,
        DNSTSIGKeyTranslator(),
        DNS_LOGGING_PROFILE,
        # TLS
        TLSServerTranslator(),
        TLSClientTranslator(),
        CertificateTranslator(),
        CABundleTranslator(),
        CipherRuleTranslator(),
        CipherGroupTranslator(),
        CertificateValidatorOCSPTranslator(),
        # Scripting and policies
        IRuleTranslator(),
        IFileTranslator(),
        DataGroupTranslator(),
        EndpointPolicyTranslator(),
        EndpointStrategyTranslator(),
        # Security
        DOSProfileTranslator(),
        SecurityLogProfileTranslator(),
        ProtocolInspectionProfileTranslator(),
        LogPublisherTranslator(),
        LogDestinationTranslator(),
        FirewallPolicyTranslator(),
        FirewallAddressListTranslator(),
        FIREWALL_PORT_LIST,
        FIREWALL_RULE_LIST,
        NET_ADDRESS_LIST,
        NET_PORT_LIST,
        NATPolicyTranslator(),
        NATSourceTranslationTranslator(),
        IdleTimeoutPolicyTranslator(),
        WAFPolicyTranslator(),
        AccessProfileTranslator(),
        PerRequestAccessPolicyTranslator(),
        # GSLB
        GSLBServerTranslator(),
        GSLBDataCenterTranslator(),
        GSLBDomainTranslator(),
        GSLBMonitorTranslator(),
        GSLBPoolTranslator(),
        GSLBProberPoolTranslator(),
        GSLBTopologyRegionTranslator(),
        GSLBTopologyRecordsTranslator(),
        GSLBIRuleTranslator(),
    )

    def __init__(self, translators: Optional[Iterable[Translator]] = None):
        self._registry: Dict[str, Translator] = {}
        for translator in self.TRANSLATORS if translators is None else translators:
            self._registry[translator.declared_class] = translator

    def get(self, declared_class: str) -> Optional[Translator]:
        """Translator for a declared class, None for classes that are not translated"""
        return self._registry.get(declared_class)

    def __contains__(self, declared_class: str) -> bool:
        return declared_class in self._registry

    def __len__(self) -> int:
        return len(self._registry)

    @property
    def declared_classes(self):
        return sorted(self._registry)
