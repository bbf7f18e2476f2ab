import asyncio
import sys
import unittest
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.analyzer.errors import AnalyzerError, SubmissionCancelled  # noqa: E402
from app.analyzer.http_client import ANALYZE_PATH, HttpAnalyzerClient  # noqa: E402
from app.analyzer.types import CancelSignal  # noqa: E402
from app.upload.validator import PDF_MIME_TYPE, UploadCandidate  # noqa: E402

BASE_URL = "http://analyzer.test"


def _candidate() -> UploadCandidate:
    return UploadCandidate.from_bytes("resume.pdf", b"%PDF-1.4 fake", PDF_MIME_TYPE)


class HttpAnalyzerClientTests(unittest.IsolatedAsyncioTestCase):
    def _client(self, handler) -> HttpAnalyzerClient:
        transport = httpx.MockTransport(handler)
        self.http = httpx.AsyncClient(transport=transport, base_url=BASE_URL)
        return HttpAnalyzerClient(BASE_URL, client=self.http)

    async def asyncTearDown(self):
        await self.http.aclose()

    async def test_submit_posts_multipart_and_returns_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = request.read()
            return httpx.Response(200, json={"title": "Backend Engineer", "matchScore": {"overall": 0.82}})

        client = self._client(handler)
        result = await client.submit_for_analysis(_candidate(), cancel_signal=CancelSignal())

        self.assertEqual(result["title"], "Backend Engineer")
        self.assertEqual(seen["method"], "POST")
        self.assertEqual(seen["path"], ANALYZE_PATH)
        self.assertIn(b'name="resume"', seen["body"])
        self.assertIn(b'filename="resume.pdf"', seen["body"])
        self.assertIn(b"%PDF-1.4 fake", seen["body"])

    async def test_error_detail_is_surfaced(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "Could not parse resume."})

        client = self._client(handler)
        with self.assertRaises(AnalyzerError) as ctx:
            await client.submit_for_analysis(_candidate(), cancel_signal=CancelSignal())

        self.assertEqual(str(ctx.exception), "Could not parse resume.")
        self.assertEqual(ctx.exception.status_code, 422)

    async def test_error_without_detail_uses_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        client = self._client(handler)
        with self.assertRaises(AnalyzerError) as ctx:
            await client.submit_for_analysis(_candidate(), cancel_signal=CancelSignal())

        self.assertEqual(str(ctx.exception), "Analyzer returned HTTP 500.")

    async def test_malformed_body_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="not json")

        client = self._client(handler)
        with self.assertRaises(AnalyzerError):
            await client.submit_for_analysis(_candidate(), cancel_signal=CancelSignal())

    async def test_connection_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = self._client(handler)
        with self.assertRaises(AnalyzerError) as ctx:
            await client.submit_for_analysis(_candidate(), cancel_signal=CancelSignal())

        self.assertIn("Could not reach the analyzer", str(ctx.exception))

    async def test_cancel_signal_aborts_inflight_request(self):
        started = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.Event().wait()
            return httpx.Response(200, json={})

        client = self._client(handler)
        signal = CancelSignal()
        task = asyncio.create_task(client.submit_for_analysis(_candidate(), cancel_signal=signal))
        await started.wait()
        signal.cancel("user")

        with self.assertRaises(SubmissionCancelled):
            await task

    async def test_already_cancelled_signal_skips_request(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={})

        client = self._client(handler)
        signal = CancelSignal()
        signal.cancel()

        with self.assertRaises(SubmissionCancelled):
            await client.submit_for_analysis(_candidate(), cancel_signal=signal)
        self.assertEqual(calls, [])

    async def test_fetch_analysis_escapes_id_and_maps_404(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["raw_path"] = request.url.raw_path
            return httpx.Response(404, json={"detail": "Analysis not found"})

        client = self._client(handler)
        with self.assertRaises(AnalyzerError) as ctx:
            await client.fetch_analysis("abc/123")

        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(seen["raw_path"], b"/api/analysis/abc%2F123")

    async def test_fetch_analysis_returns_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"title": "A"}, {"title": "B"}])

        client = self._client(handler)
        self.assertEqual(await client.fetch_analysis("r1"), [{"title": "A"}, {"title": "B"}])


class HttpAnalyzerClientHeadersTests(unittest.IsolatedAsyncioTestCase):
    async def test_api_key_header_is_sent_on_owned_client(self):
        client = HttpAnalyzerClient(BASE_URL, api_key="secret", timeout_s=5)
        try:
            self.assertEqual(client._client.headers.get("X-API-Key"), "secret")
            self.assertEqual(str(client._client.base_url).rstrip("/"), BASE_URL)
        finally:
            await client.aclose()
        self.assertTrue(client._client.is_closed)


if __name__ == "__main__":
    unittest.main()
