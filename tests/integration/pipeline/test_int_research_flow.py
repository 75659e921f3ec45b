# tests/integration/pipeline/test_int_research_flow.py — v1
"""Integration tests for the research shell wired to real source components.

Every external host (mass.gov, CourtListener, Federal Register) is served by
the mock HTTP router; PDFs are generated in-test.
"""

from __future__ import annotations

import httpx
import pytest

from lexresearch.core.models import Query, ResearchMode, SourceType
from lexresearch.pipeline.models import ShellState
from lexresearch.pipeline.research import ResearchShell

MASS = "www.mass.gov"
CL = "www.courtlistener.com"
FR = "www.federalregister.gov"
CRIMINAL = "/doc/massachusetts-rules-of-criminal-procedure/download"
APPELLATE = "/doc/massachusetts-rules-of-appellate-procedure/download"
CIVIL = "/doc/massachusetts-rules-of-civil-procedure/download"

OPINION = {
    "caseName": "Commonwealth v. Smith",
    "citation": ["410 Mass. 123"],
    "snippet": "The defendant sought to appeal his criminal conviction.",
    "absolute_url": "/opinion/1/commonwealth-v-smith/",
    "court": "Massachusetts Supreme Judicial Court",
    "dateFiled": "1991-06-01",
    "cluster_id": 1,
}
DOCKET = {
    "caseName": "Commonwealth v. Jones",
    "docketNumber": "SJC-12345",
    "docket_absolute_url": "/docket/77/commonwealth-v-jones/",
    "court_id": "mass",
    "docket_id": 77,
}
TWOMBLY = {
    "caseName": "Bell Atlantic Corp. v. Twombly",
    "citation": ["550 U.S. 544"],
    "absolute_url": "/opinion/145730/bell-atlantic-corp-v-twombly/",
    "court_id": "scotus",
}
REGULATIONS = {
    "count": 1,
    "results": [
        {
            "title": "Civil Complaint Filing Requirements",
            "abstract": "Rule on electronic filing of a civil complaint.",
            "document_number": "2024-00001",
            "html_url": "https://www.federalregister.gov/documents/2024/01/02/2024-00001/x",
            "publication_date": "2024-01-02",
            "type": "Rule",
            "agencies": [{"name": "Department of Justice"}],
        }
    ],
}


def courtlistener_search(request: httpx.Request) -> httpx.Response:
    params = request.url.params
    if params.get("type") == "r":
        return httpx.Response(200, json={"results": [DOCKET]})
    if params.get("q", "").startswith("citation:"):
        return httpx.Response(200, json={"results": [TWOMBLY]})
    return httpx.Response(200, json={"results": [OPINION]})


@pytest.fixture
def live_router(router, pdf_factory):
    router.add_bytes(MASS, CRIMINAL, pdf_factory("Rule 30. A criminal conviction may be appealed."))
    router.add_bytes(MASS, APPELLATE, pdf_factory("Rule 4. Notice of appeal is due in thirty days."))
    router.add_bytes(MASS, CIVIL, pdf_factory("Rule 8. A civil complaint shall contain a short statement."))
    router.add(CL, "/api/rest/v4/search/", courtlistener_search)
    router.add_json(FR, "/api/v1/documents.json", REGULATIONS)
    return router


class TestFastFlow:
    @pytest.mark.asyncio
    async def test_fast_query_merges_official_and_case_law(self, settings, live_router):
        async with ResearchShell(settings, http_client=live_router.client()) as shell:
            response = await shell.research(
                Query(text="appeal a criminal conviction", mode="fast", user_id="u1")
            )
        assert response.status == "ok"
        assert response.mode == ResearchMode.FAST
        assert {o.source for o in response.outcomes} == {"official", "courtlistener"}
        types = {r.source_type for r in response.results}
        assert types == {SourceType.OFFICIAL_PDF, SourceType.CASE_LAW}
        scores = [r.relevance_score for r in response.results]
        assert scores == sorted(scores, reverse=True)
        assert live_router.requests_to(FR) == []
        assert response.cost is not None
        assert response.cost.estimated_cost > 0

    @pytest.mark.asyncio
    async def test_repeat_query_served_from_cache(self, settings, live_router):
        query = Query(text="appeal a criminal conviction", mode="fast", user_id="u1")
        async with ResearchShell(settings, http_client=live_router.client()) as shell:
            first = await shell.research(query)
            calls = len(live_router.requests)
            second = await shell.research(query)
            usage = shell.usage.get("u1")
        assert first.status == "ok"
        assert second.status == "cached"
        assert ShellState.CACHE_HIT in second.trace
        assert len(live_router.requests) == calls
        assert [r.url for r in second.results] == [r.url for r in first.results]
        assert usage.cache_hits == 1

    @pytest.mark.asyncio
    async def test_case_law_outage_is_partial(self, settings, router, pdf_factory):
        router.add_bytes(MASS, CRIMINAL, pdf_factory("Rule 30. A criminal conviction may be appealed."))
        router.add_bytes(MASS, APPELLATE, pdf_factory("Rule 4. Notice of appeal."))
        router.add(CL, "/api/rest/v4/search/", lambda request: httpx.Response(503))
        async with ResearchShell(settings, http_client=router.client()) as shell:
            response = await shell.research(
                Query(text="appeal a criminal conviction", mode="fast", user_id="u1")
            )
        assert response.status == "partial"
        assert response.failed_sources == ["courtlistener"]
        assert response.results
        assert all(r.source_type == SourceType.OFFICIAL_PDF for r in response.results)

    @pytest.mark.asyncio
    async def test_official_fallback_text_when_mass_gov_down(self, unconfigured_settings, router):
        async with ResearchShell(unconfigured_settings, http_client=router.client()) as shell:
            response = await shell.research(
                Query(text="Rule 31 criminal appeal", mode="fast")
            )
        assert response.status == "partial"
        assert response.failed_sources == ["courtlistener"]
        assert any(r.rule_number == "Rule 31" for r in response.results)

    @pytest.mark.asyncio
    async def test_everything_down_fails(self, unconfigured_settings, router):
        async with ResearchShell(unconfigured_settings, http_client=router.client()) as shell:
            response = await shell.research(Query(text="child custody after divorce", mode="fast"))
        assert response.status == "failed"
        assert response.results == []
        assert set(response.failed_sources) == {"official", "courtlistener"}


class TestDeepFlow:
    @pytest.mark.asyncio
    async def test_deep_query_adds_regulations_dockets_and_citations(self, settings, live_router):
        text = "Bell Atlantic Corp. v. Twombly, 550 U.S. 544 pleading standard for a civil complaint"
        async with ResearchShell(settings, http_client=live_router.client()) as shell:
            response = await shell.research(Query(text=text, mode="thorough", user_id="u2"))
        assert response.status == "ok"
        assert response.mode == ResearchMode.DEEP
        assert {o.source for o in response.outcomes} == {
            "official", "courtlistener", "federal_register", "courtlistener_dockets",
        }
        assert any(r.source_type == SourceType.REGULATION for r in response.results)
        assert any(r.document_type == "docket" for r in response.results)
        assert len(response.citations) == 1
        citation = response.citations[0]
        assert citation.found
        assert citation.case_name == "Bell Atlantic Corp. v. Twombly"
        assert live_router.requests_to(FR)

    @pytest.mark.asyncio
    async def test_deep_rate_limit_rejects_with_fast_alternative(self, settings, live_router):
        settings = settings.model_copy(
            update={"rate_limit_deep_per_minute": 1, "rate_limit_deep_per_hour": 1}
        )
        async with ResearchShell(settings, http_client=live_router.client()) as shell:
            first = await shell.research(
                Query(text="appeal a criminal conviction", mode="deep", user_id="u3")
            )
            second = await shell.research(
                Query(text="summary judgment in a civil lawsuit", mode="deep", user_id="u3")
            )
        assert first.status == "ok"
        assert second.status == "rejected"
        assert second.rejection is not None
        assert second.rejection.alternative_mode == ResearchMode.FAST
        assert second.results == []
