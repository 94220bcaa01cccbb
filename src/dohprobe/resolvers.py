"""
Built-in DoH provider profiles.

Provides pre-configured endpoints for popular public resolvers, both
RFC 8484 wire-format endpoints and JSON API endpoints.
"""

from urllib.parse import urlparse

from .models import RequestKind, ResolverProfile


# Pre-configured provider profiles
RESOLVERS: dict[str, ResolverProfile] = {
    "1.1.1.1": ResolverProfile(
        id="1.1.1.1",
        endpoint="https://1.1.1.1/dns-query",
        kind=RequestKind.JSON,
        description="Cloudflare JSON API by IP",
    ),
    "9.9.9.9": ResolverProfile(
        id="9.9.9.9",
        endpoint="https://9.9.9.9:5053/dns-query",
        kind=RequestKind.JSON,
        description="Quad9 JSON API by IP",
    ),
    "aliyun": ResolverProfile(
        id="aliyun",
        endpoint="https://dns.alidns.com/resolve",
        kind=RequestKind.JSON,
        description="Alibaba Cloud public DNS JSON API",
    ),
    "cloudflare": ResolverProfile(
        id="cloudflare",
        endpoint="https://cloudflare-dns.com/dns-query",
        kind=RequestKind.STANDARD,
        description="Cloudflare's privacy-focused DNS resolver",
    ),
    "google": ResolverProfile(
        id="google",
        endpoint="https://dns.google/dns-query",
        kind=RequestKind.STANDARD,
        description="Google Public DNS",
    ),
    "google-json": ResolverProfile(
        id="google-json",
        endpoint="https://dns.google/resolve",
        kind=RequestKind.JSON,
        description="Google Public DNS JSON API",
    ),
    "quad9": ResolverProfile(
        id="quad9",
        endpoint="https://dns.quad9.net/dns-query",
        kind=RequestKind.STANDARD,
        description="Quad9 with malware blocking",
    ),
    "alidns": ResolverProfile(
        id="alidns",
        endpoint="https://dns.alidns.com/dns-query",
        kind=RequestKind.STANDARD,
        description="Alibaba Cloud public DNS",
    ),
    "rubyfish": ResolverProfile(
        id="rubyfish",
        endpoint="https://rubyfish.cn/dns-query",
        kind=RequestKind.STANDARD,
        description="RubyFish public DoH",
    ),
    "adguard": ResolverProfile(
        id="adguard",
        endpoint="https://dns.adguard-dns.com/dns-query",
        kind=RequestKind.STANDARD,
        description="AdGuard DNS with ad blocking",
    ),
    "opendns": ResolverProfile(
        id="opendns",
        endpoint="https://doh.opendns.com/dns-query",
        kind=RequestKind.STANDARD,
        description="Cisco OpenDNS",
    ),
}

# Default providers for a quick comparison
DEFAULT_RESOLVERS = ["1.1.1.1", "9.9.9.9", "aliyun"]


def get_resolver(name: str) -> ResolverProfile:
    """Get a provider by name (case-insensitive)."""
    key = name.lower()
    if key in RESOLVERS:
        return RESOLVERS[key]
    raise ValueError(f"Unknown resolver: {name}. Available: {list(RESOLVERS.keys())}")


def create_custom_resolver(
    endpoint: str,
    kind: RequestKind = RequestKind.STANDARD,
    name: str | None = None,
) -> ResolverProfile:
    """
    Create a profile for an arbitrary DoH endpoint.

    Args:
        endpoint: Full https:// URL of the DoH endpoint
        kind: Request encoding the endpoint understands
        name: Identifier to show in reports (defaults to the URL host)

    Raises:
        ValueError: If the endpoint is not an https URL
    """
    parsed = urlparse(endpoint)
    if parsed.scheme != "https" or not parsed.netloc:
        raise ValueError(f"DoH endpoint must be an https:// URL: {endpoint}")
    return ResolverProfile(
        id=name or parsed.netloc,
        endpoint=endpoint,
        kind=kind,
        description=f"Custom resolver at {endpoint}",
    )


def list_resolvers() -> list[str]:
    """List all available provider names."""
    return list(RESOLVERS.keys())
