"""Tests for the query coordinator."""

import asyncio
import itertools
from unittest.mock import patch

import httpx
import pytest

from dohprobe.config import QueryConfig
from dohprobe.coordinator import QueryCoordinator
from dohprobe.doh_client import DoHClient
from dohprobe.models import ErrorKind, RecordType

from helpers import FakeDoHClient, ScriptedProber, failed, mock_http_client, resolved


class TestQueryCoordinator:
    """Tests for QueryCoordinator.run."""

    @pytest.mark.asyncio
    async def test_one_result_per_provider_despite_failures(self, profiles, fast_config):
        client = FakeDoHClient({
            "1.1.1.1": resolved("192.30.255.113"),
            "9.9.9.9": failed(),
            "aliyun": RuntimeError("unexpected"),
        })
        coordinator = QueryCoordinator(fast_config, client=client, prober=ScriptedProber())

        report = await coordinator.run("github.com", profiles)

        assert len(report) == 3
        assert [r.profile.id for r in report] == ["1.1.1.1", "9.9.9.9", "aliyun"]
        assert report.results[0].is_success
        assert report.results[1].error == ErrorKind.RESOLUTION_FAILED
        assert report.results[2].error == ErrorKind.RESOLUTION_FAILED
        assert report.hostname == "github.com"
        assert report.record_type == RecordType.A

    @pytest.mark.asyncio
    @pytest.mark.parametrize("delays", list(itertools.permutations([0.0, 0.01, 0.03])))
    async def test_order_follows_configuration(self, profiles, fast_config, delays):
        ids = [p.id for p in profiles]
        client = FakeDoHClient(
            {
                "1.1.1.1": resolved("192.0.2.1"),
                "9.9.9.9": resolved("192.0.2.9"),
                "aliyun": resolved("192.0.2.42"),
            },
            delays=dict(zip(ids, delays)),
        )
        coordinator = QueryCoordinator(fast_config, client=client, prober=ScriptedProber())

        report = await coordinator.run("github.com", profiles)

        assert [r.profile.id for r in report] == ids
        assert [r.address for r in report] == ["192.0.2.1", "192.0.2.9", "192.0.2.42"]

    @pytest.mark.asyncio
    async def test_providers_run_concurrently(self, profiles, fast_config):
        client = FakeDoHClient(
            {p.id: resolved("192.0.2.1") for p in profiles},
            delays={p.id: 0.2 for p in profiles},
        )
        coordinator = QueryCoordinator(fast_config, client=client, prober=ScriptedProber())
        loop = asyncio.get_running_loop()

        start = loop.time()
        await coordinator.run("github.com", profiles)
        elapsed = loop.time() - start

        assert elapsed < 0.5

    @pytest.mark.asyncio
    async def test_progress_callback(self, profiles, fast_config):
        client = FakeDoHClient({p.id: resolved("192.0.2.1") for p in profiles})
        coordinator = QueryCoordinator(fast_config, client=client, prober=ScriptedProber())
        updates = []

        await coordinator.run(
            "github.com",
            profiles,
            progress_callback=lambda pid, done, total: updates.append((pid, done, total)),
        )

        assert sorted(u[0] for u in updates) == sorted(p.id for p in profiles)
        assert [u[1] for u in updates] == [1, 2, 3]
        assert all(u[2] == 3 for u in updates)

    @pytest.mark.asyncio
    async def test_no_providers(self, fast_config):
        coordinator = QueryCoordinator(fast_config, client=FakeDoHClient({}), prober=ScriptedProber())

        report = await coordinator.run("github.com", [])

        assert len(report) == 0
        assert report.duration_seconds >= 0

    @pytest.mark.asyncio
    async def test_context_manager_closes_resources(self, fast_config):
        client = FakeDoHClient({})
        prober = ScriptedProber()

        async with QueryCoordinator(fast_config, client=client, prober=prober):
            pass

        assert client.closed
        assert prober.closed

    @pytest.mark.asyncio
    async def test_each_provider_gets_its_own_prober(self, profiles, fast_config):
        client = FakeDoHClient({p.id: resolved("192.30.255.113") for p in profiles})
        created = []

        def make_prober(method, port):
            prober = ScriptedProber()
            created.append(prober)
            return prober

        with patch("dohprobe.coordinator.create_prober", side_effect=make_prober):
            coordinator = QueryCoordinator(fast_config, client=client)
            report = await coordinator.run("github.com", profiles)

        assert len(created) == 3
        assert all(len(prober.calls) == fast_config.probe_count for prober in created)
        assert all(prober.closed for prober in created)
        assert all(r.loss_percent == 0.0 for r in report)

    def test_rejects_invalid_config(self):
        with pytest.raises(ValueError):
            QueryCoordinator(QueryConfig(probe_count=0), client=FakeDoHClient({}), prober=ScriptedProber())


class TestEndToEnd:
    """Coordinator wired to a real DoHClient over a mocked HTTP transport."""

    @pytest.mark.asyncio
    async def test_http_500_provider_is_not_probed(self, profiles, fast_config):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "9.9.9.9":
                return httpx.Response(500)
            if request.url.host == "dns.alidns.com":
                return httpx.Response(200, json={"Status": 0, "Answer": [
                    {"name": "github.com.", "type": 1, "TTL": 30, "data": "20.205.243.166"},
                ]})
            return httpx.Response(200, json={"Status": 0, "Answer": [
                {"name": "github.com", "type": 1, "TTL": 60, "data": "192.30.255.113"},
            ]})

        client = DoHClient(client=mock_http_client(handler))
        prober = ScriptedProber({
            "192.30.255.113": [180.0] * 10,
            "20.205.243.166": [asyncio.TimeoutError()] * 10,
        })

        async with QueryCoordinator(fast_config, client=client, prober=prober) as coordinator:
            report = await coordinator.run("github.com", profiles)

        cloudflare, quad9, aliyun = report.results

        assert cloudflare.address == "192.30.255.113"
        assert cloudflare.avg_latency_ms == pytest.approx(180.0)
        assert cloudflare.loss_percent == 0.0

        assert quad9.address is None
        assert quad9.error == ErrorKind.RESOLUTION_FAILED
        assert quad9.loss_percent == 100.0

        assert aliyun.address == "20.205.243.166"
        assert aliyun.record.name == "github.com."
        assert aliyun.avg_latency_ms is None
        assert aliyun.loss_percent == 100.0

        probed = {address for address, _ in prober.calls}
        assert probed == {"192.30.255.113", "20.205.243.166"}
