"""
DNS-over-HTTPS client.

Encodes an address query for a hostname, sends it to one provider's
endpoint and decodes the answer section into address records. Two
request encodings are supported:

- RFC 8484 wire format (application/dns-message) over GET or POST
- JSON API (application/dns-json) as served by Cloudflare, Google,
  Quad9 and AliDNS

Failures are returned as a Resolution carrying an ErrorKind; nothing
in here raises for network or decoding problems.
"""

import base64
import ipaddress
import logging
import time
from typing import Any, Optional

import dns.exception
import dns.message
import dns.name
import dns.rcode
import dns.rdatatype
import httpx

from .models import DNSRecord, ErrorKind, RecordType, RequestKind, Resolution, ResolverProfile


logger = logging.getLogger(__name__)

DNS_MESSAGE = "application/dns-message"
DNS_JSON = "application/dns-json"

# Answers with these rcodes are decoded; anything else is a failed lookup
ACCEPTED_RCODES = (dns.rcode.NOERROR, dns.rcode.NXDOMAIN)


class ResponseError(Exception):
    """Raised internally when a DoH response cannot be used."""


def _is_ip_literal(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def _rcode_text(rcode: int) -> str:
    try:
        return dns.rcode.to_text(rcode)
    except ValueError:
        return f"status {rcode}"


class DoHClient:
    """
    Resolves hostnames against DoH providers.

    One pooled HTTP/2 client is shared by every lookup made through
    this instance; each lookup is exactly one HTTP request.
    """

    def __init__(
        self,
        record_type: RecordType = RecordType.A,
        timeout: float = 5.0,
        http_method: str = "GET",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the DoH client.

        Args:
            record_type: Address record type to ask for
            timeout: Default request timeout in seconds
            http_method: GET or POST, used for wire-format providers
            client: Pre-built httpx client (not closed by this object)
        """
        self.record_type = record_type
        self.timeout = timeout
        self.http_method = http_method.upper()
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP/2 client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                http2=True,
                timeout=httpx.Timeout(10.0, connect=5.0),
            )
        return self._client

    @property
    def _rdtype(self) -> dns.rdatatype.RdataType:
        return dns.rdatatype.from_text(self.record_type.value)

    def _create_query_message(self, hostname: str) -> dns.message.Message:
        """Create a DNS query message with ID 0 (RFC 8484 section 4.1)."""
        message = dns.message.make_query(hostname, self._rdtype)
        message.id = 0
        return message

    async def _send_wire(
        self,
        client: httpx.AsyncClient,
        hostname: str,
        profile: ResolverProfile,
        timeout: float,
    ) -> list[DNSRecord]:
        """Send an RFC 8484 query and decode the wire-format answer."""
        wire = self._create_query_message(hostname).to_wire()

        if self.http_method == "POST":
            response = await client.post(
                profile.endpoint,
                content=wire,
                headers={"Content-Type": DNS_MESSAGE, "Accept": DNS_MESSAGE},
                timeout=timeout,
            )
        else:
            encoded = base64.urlsafe_b64encode(wire).rstrip(b"=").decode("ascii")
            response = await client.get(
                profile.endpoint,
                params={"dns": encoded},
                headers={"Accept": DNS_MESSAGE},
                timeout=timeout,
            )

        response.raise_for_status()

        try:
            message = dns.message.from_wire(response.content)
        except dns.exception.DNSException as e:
            raise ResponseError(f"malformed DNS message: {e}") from e

        return self._extract_wire_records(message)

    def _extract_wire_records(self, message: dns.message.Message) -> list[DNSRecord]:
        """Extract address records from a decoded DNS message."""
        rcode = message.rcode()
        if rcode not in ACCEPTED_RCODES:
            raise ResponseError(f"server answered {dns.rcode.to_text(rcode)}")

        rdtype = self._rdtype
        records = []
        for rrset in message.answer:
            if rrset.rdtype != rdtype:
                continue
            for rdata in rrset:
                address = str(rdata.address)
                if not _is_ip_literal(address):
                    continue
                records.append(DNSRecord(
                    name=rrset.name.to_text(),
                    record_type=int(rrset.rdtype),
                    ttl=rrset.ttl,
                    address=address,
                ))
        return records

    async def _send_json(
        self,
        client: httpx.AsyncClient,
        hostname: str,
        profile: ResolverProfile,
        timeout: float,
    ) -> list[DNSRecord]:
        """Send a JSON API query and decode its answer list."""
        response = await client.get(
            profile.endpoint,
            params={"name": hostname, "type": self.record_type.value},
            headers={"Accept": DNS_JSON},
            timeout=timeout,
        )
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError as e:
            raise ResponseError(f"malformed JSON body: {e}") from e

        return self._extract_json_records(body)

    def _extract_json_records(self, body: Any) -> list[DNSRecord]:
        """Extract address records from a dns-json response body."""
        if not isinstance(body, dict) or not isinstance(body.get("Status"), int):
            raise ResponseError("JSON body has no integer Status field")

        status = body["Status"]
        if status not in ACCEPTED_RCODES:
            raise ResponseError(f"server answered {_rcode_text(status)}")

        answers = body.get("Answer") or []
        if not isinstance(answers, list):
            raise ResponseError("JSON Answer field is not a list")

        records = []
        for answer in answers:
            if not isinstance(answer, dict):
                continue
            if answer.get("type") != self.record_type.code:
                continue
            address = answer.get("data")
            if not isinstance(address, str) or not _is_ip_literal(address):
                continue
            ttl = answer.get("TTL", 0)
            if not isinstance(ttl, int):
                continue
            records.append(DNSRecord(
                name=str(answer.get("name", "")),
                record_type=answer["type"],
                ttl=ttl,
                address=address,
            ))
        return records

    async def resolve(
        self,
        hostname: str,
        profile: ResolverProfile,
        timeout: Optional[float] = None,
    ) -> Resolution:
        """
        Look up the address records of a hostname through one provider.

        Args:
            hostname: Name to resolve
            profile: Provider to ask
            timeout: Request timeout in seconds (client default if None)

        Returns:
            Resolution with the decoded records, or with error set to
            RESOLUTION_FAILED (transport, HTTP or decoding problem) or
            NO_RECORDS (valid answer without usable addresses)
        """
        timeout = self.timeout if timeout is None else timeout
        client = await self._get_client()

        start = time.perf_counter_ns()
        try:
            # empty or over-long labels are rejected before anything is sent
            dns.name.from_text(hostname)
            if profile.kind == RequestKind.JSON:
                records = await self._send_json(client, hostname, profile, timeout)
            else:
                records = await self._send_wire(client, hostname, profile, timeout)
        except httpx.HTTPStatusError as e:
            return self._failed(profile, f"HTTP {e.response.status_code}", start)
        except httpx.TimeoutException:
            return self._failed(profile, f"timed out after {timeout}s", start)
        except (httpx.HTTPError, httpx.InvalidURL, ResponseError, dns.exception.DNSException) as e:
            return self._failed(profile, str(e) or type(e).__name__, start)

        elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000

        if not records:
            logger.debug("%s returned no %s records for %s", profile.id, self.record_type.value, hostname)
            return Resolution(
                error=ErrorKind.NO_RECORDS,
                message=f"no {self.record_type.value} records",
                elapsed_ms=elapsed_ms,
            )

        logger.debug(
            "%s resolved %s to %s in %.1fms",
            profile.id, hostname, [r.address for r in records], elapsed_ms,
        )
        return Resolution(records=records, elapsed_ms=elapsed_ms)

    def _failed(self, profile: ResolverProfile, message: str, start: int) -> Resolution:
        elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000
        logger.warning("%s lookup failed: %s", profile.id, message)
        return Resolution(
            error=ErrorKind.RESOLUTION_FAILED,
            message=message,
            elapsed_ms=elapsed_ms,
        )

    async def close(self):
        """Close the HTTP client if this object created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None
