"""Adapter wire behavior against mocked vendor endpoints."""

import json

import httpx
import pytest

from motionrelay.services.providers import ADAPTER_FACTORIES, build_adapters
from motionrelay.services.providers.fal_video import FalAdapter
from motionrelay.services.providers.huggingface_video import HuggingFaceAdapter
from motionrelay.services.providers.luma_video import LumaAdapter
from motionrelay.services.providers.pollinations_video import FreeModel, PollinationsAdapter
from motionrelay.services.providers.replicate_video import ReplicateAdapter
from motionrelay.services.providers.runway_video import RunwayAdapter
from motionrelay.services.providers.sora_video import SoraAdapter, map_seconds, map_size
from motionrelay.services.video_errors import (
    ArtifactMissing,
    CredentialError,
    VendorRejected,
    VendorTransientFailure,
)
from motionrelay.services.video_types import AspectRatio, GenerationRequest, Resolution

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 4096


def client_for(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def no_sleep(_seconds):
    return None


def test_every_registered_provider_has_an_adapter():
    adapters = build_adapters()
    assert set(adapters) == set(ADAPTER_FACTORIES)
    assert all(adapter.provider_id == pid for pid, adapter in adapters.items())


class TestPollinations:
    @pytest.mark.asyncio
    async def test_skips_models_until_one_returns_video(self):
        calls = []

        def handler(request):
            model = request.url.params["model"]
            calls.append(model)
            if model == "seedance":
                # Too small to be a real clip
                return httpx.Response(200, content=b"x" * 200, headers={"content-type": "video/mp4"})
            if model == "grok-video":
                return httpx.Response(503, text="overloaded")
            return httpx.Response(200, content=VIDEO_BYTES, headers={"content-type": "video/mp4"})

        sub_models = [FreeModel(name, 5.0, 1000) for name in ("seedance", "grok-video", "wan")]
        adapter = PollinationsAdapter(
            client_for(handler), base_url="https://gen.test/video", sub_models=sub_models,
        )

        handle, artifact = await adapter.submit_and_wait(GenerationRequest(prompt="a red kite"), "")

        assert calls == ["seedance", "grok-video", "wan"]
        assert handle.vendor_job_id.startswith("pollinations-wan-")
        assert artifact.content == VIDEO_BYTES

    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"url": "https://cdn.test/clip.mp4"})

        adapter = PollinationsAdapter(
            client_for(handler), base_url="https://gen.test/video",
            sub_models=[FreeModel("seedance", 5.0, 1000)],
        )
        request = GenerationRequest(prompt="sunset over sea", duration_seconds=12, aspect_ratio=AspectRatio.PORTRAIT)

        _, artifact = await adapter.submit_and_wait(request, "")

        assert seen["path"] == "/video/sunset over sea"
        assert seen["params"] == {"duration": "8", "width": "480", "height": "848", "model": "seedance"}
        assert seen["auth"] is None
        assert artifact.url == "https://cdn.test/clip.mp4"
        assert artifact.duration_seconds == 8

    @pytest.mark.asyncio
    async def test_all_models_failing_is_transient(self):
        adapter = PollinationsAdapter(
            client_for(lambda request: httpx.Response(500, text="down")),
            base_url="https://gen.test/video",
            sub_models=[FreeModel("seedance", 5.0, 1000), FreeModel("grok-video", 5.0, 1000)],
        )

        with pytest.raises(VendorTransientFailure):
            await adapter.submit_and_wait(GenerationRequest(prompt="a red kite"), "")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", ["connect_error", "read_timeout", "image"])
    async def test_model_failure_moves_to_next_model(self, failure):
        calls = []

        def handler(request):
            model = request.url.params["model"]
            calls.append(model)
            if model == "seedance":
                if failure == "connect_error":
                    raise httpx.ConnectError("connection refused", request=request)
                if failure == "read_timeout":
                    raise httpx.ReadTimeout("timed out", request=request)
                return httpx.Response(200, content=b"\xff\xd8" * 2500, headers={"content-type": "image/jpeg"})
            return httpx.Response(200, content=VIDEO_BYTES, headers={"content-type": "video/mp4"})

        adapter = PollinationsAdapter(
            client_for(handler), base_url="https://gen.test/video",
            sub_models=[FreeModel("seedance", 5.0, 1000), FreeModel("grok-video", 5.0, 1000)],
        )

        handle, artifact = await adapter.submit_and_wait(GenerationRequest(prompt="a red kite"), "")

        assert calls == ["seedance", "grok-video"]
        assert handle.vendor_job_id.startswith("pollinations-grok-video-")
        assert artifact.content_type == "video/mp4"
        assert artifact.content == VIDEO_BYTES


class TestRunway:
    @pytest.mark.asyncio
    async def test_text_to_video_lifecycle(self):
        polls = []
        created = {}

        def handler(request):
            if request.method == "POST":
                created["path"] = request.url.path
                created["body"] = json.loads(request.content)
                created["version"] = request.headers["x-runway-version"]
                return httpx.Response(200, json={"id": "task-1"})
            polls.append(request.url.path)
            if len(polls) < 3:
                return httpx.Response(200, json={"status": "RUNNING", "progress": 0.5})
            return httpx.Response(200, json={"status": "SUCCEEDED", "output": ["https://runway.test/v.mp4"]})

        adapter = RunwayAdapter(
            client_for(handler), base_url="https://runway.test/v1", poll_interval=1, max_wait=60, sleep=no_sleep,
        )
        request = GenerationRequest(prompt="city timelapse", duration_seconds=30, aspect_ratio="9:16")

        handle, artifact = await adapter.submit_and_wait(request, "key_abc")

        assert created["path"] == "/v1/text_to_video"
        assert created["body"]["model"] == "gen4.5"
        assert created["body"]["ratio"] == "720:1280"
        assert created["body"]["duration"] == 10
        assert created["version"] == "2024-11-06"
        assert polls == ["/v1/tasks/task-1"] * 3
        assert handle.vendor_job_id == "task-1"
        assert artifact.url == "https://runway.test/v.mp4"
        assert artifact.duration_seconds == 10

    @pytest.mark.asyncio
    async def test_image_to_video_uses_turbo_model(self):
        bodies = []

        def handler(request):
            if request.method == "POST":
                bodies.append((request.url.path, json.loads(request.content)))
                return httpx.Response(200, json={"id": "task-2"})
            return httpx.Response(200, json={"status": "SUCCEEDED", "output": ["https://runway.test/i.mp4"]})

        adapter = RunwayAdapter(client_for(handler), base_url="https://runway.test/v1", sleep=no_sleep)
        request = GenerationRequest(prompt="pan left", reference_image_url="https://img.test/frame.png")

        await adapter.submit_and_wait(request, "key_abc")

        path, body = bodies[0]
        assert path == "/v1/image_to_video"
        assert body["model"] == "gen4_turbo"
        assert body["promptImage"] == "https://img.test/frame.png"

    @pytest.mark.asyncio
    async def test_vendor_failure_is_rejected(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"id": "task-3"})
            return httpx.Response(200, json={"status": "FAILED", "failure": "SAFETY.INPUT.TEXT"})

        adapter = RunwayAdapter(client_for(handler), base_url="https://runway.test/v1", sleep=no_sleep)

        with pytest.raises(VendorRejected, match="SAFETY.INPUT.TEXT"):
            await adapter.submit_and_wait(GenerationRequest(prompt="x"), "key_abc")


class TestSora:
    def test_seconds_mapping(self):
        assert [map_seconds(s) for s in (1, 5, 6, 10, 11, 30)] == ["4", "4", "8", "8", "12", "12"]

    def test_size_mapping(self):
        assert map_size(Resolution.HD, AspectRatio.LANDSCAPE) == "1280x720"
        assert map_size(Resolution.FHD, AspectRatio.PORTRAIT) == "1024x1792"

    @pytest.mark.asyncio
    async def test_fetch_downloads_content_and_cleans_up(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, request.url.params.get("variant")))
            if request.method == "POST":
                return httpx.Response(200, json={"id": "video_1", "status": "queued"})
            if request.method == "DELETE":
                return httpx.Response(200, json={"deleted": True})
            if request.url.path.endswith("/content"):
                if request.url.params.get("variant") == "thumbnail":
                    return httpx.Response(500, text="no thumbnail")
                return httpx.Response(200, content=VIDEO_BYTES, headers={"content-type": "video/mp4"})
            return httpx.Response(200, json={"status": "completed"})

        adapter = SoraAdapter(client_for(handler), base_url="https://openai.test/v1", sleep=no_sleep)

        _, artifact = await adapter.submit_and_wait(GenerationRequest(prompt="waves", duration_seconds=8), "sk-x")

        assert artifact.content == VIDEO_BYTES
        assert artifact.thumbnail is None
        assert artifact.duration_seconds == 8
        assert ("DELETE", "/v1/videos/video_1", None) in seen

    @pytest.mark.asyncio
    async def test_thumbnail_image_is_kept(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"id": "video_2", "status": "queued"})
            if request.method == "DELETE":
                return httpx.Response(200, json={"deleted": True})
            if request.url.path.endswith("/content"):
                if request.url.params.get("variant") == "thumbnail":
                    return httpx.Response(200, content=b"\xff\xd8" * 64, headers={"content-type": "image/webp"})
                return httpx.Response(200, content=VIDEO_BYTES, headers={"content-type": "video/mp4"})
            return httpx.Response(200, json={"status": "completed"})

        adapter = SoraAdapter(client_for(handler), base_url="https://openai.test/v1", sleep=no_sleep)

        _, artifact = await adapter.submit_and_wait(GenerationRequest(prompt="waves"), "sk-x")

        assert artifact.content_type == "video/mp4"
        assert artifact.thumbnail.content_type == "image/webp"

    @pytest.mark.asyncio
    async def test_image_in_place_of_video_is_missing(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"id": "video_3", "status": "queued"})
            if request.url.path.endswith("/content"):
                return httpx.Response(200, content=b"\xff\xd8" * 4096, headers={"content-type": "image/jpeg"})
            return httpx.Response(200, json={"status": "completed"})

        adapter = SoraAdapter(client_for(handler), base_url="https://openai.test/v1", sleep=no_sleep)

        with pytest.raises(ArtifactMissing):
            await adapter.submit_and_wait(GenerationRequest(prompt="waves"), "sk-x")


class TestReplicate:
    @pytest.mark.asyncio
    async def test_prediction_lifecycle(self):
        polls = []
        created = {}

        def handler(request):
            if request.method == "POST":
                created["path"] = request.url.path
                created["body"] = json.loads(request.content)
                created["auth"] = request.headers["authorization"]
                return httpx.Response(201, json={"id": "pred-1", "status": "starting"})
            polls.append(request.url.path)
            if len(polls) < 2:
                return httpx.Response(200, json={"status": "processing"})
            return httpx.Response(200, json={"status": "succeeded", "output": ["https://replicate.test/out.mp4"]})

        adapter = ReplicateAdapter(
            client_for(handler), base_url="https://replicate.test/v1", poll_interval=1, max_wait=60, sleep=no_sleep,
        )
        request = GenerationRequest(prompt="fox in snow", duration_seconds=20)

        handle, artifact = await adapter.submit_and_wait(request, "r8_abc")

        assert created["path"] == "/v1/predictions"
        assert created["body"]["model"] == "wan-ai/wan2.1-t2v-14b"
        assert created["body"]["input"]["num_frames"] == 81
        assert created["auth"] == "Bearer r8_abc"
        # The succeeded poll payload is reused, so fetch makes no extra call
        assert polls == ["/v1/predictions/pred-1"] * 2
        assert handle.vendor_job_id == "pred-1"
        assert artifact.url == "https://replicate.test/out.mp4"

    @pytest.mark.asyncio
    async def test_canceled_prediction_is_rejected(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": "pred-2"})
            return httpx.Response(200, json={"status": "canceled", "error": "canceled by user"})

        adapter = ReplicateAdapter(client_for(handler), base_url="https://replicate.test/v1", sleep=no_sleep)

        with pytest.raises(VendorRejected, match="canceled by user"):
            await adapter.submit_and_wait(GenerationRequest(prompt="x"), "r8_abc")


class TestFal:
    @pytest.mark.asyncio
    async def test_queue_urls_follow_submitted_model(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            assert request.headers["authorization"] == "Key fal-key"
            if request.method == "POST":
                return httpx.Response(200, json={"request_id": "req-9"})
            if request.url.path.endswith("/status"):
                if len(seen) < 3:
                    return httpx.Response(200, json={"status": "IN_QUEUE"})
                return httpx.Response(200, json={"status": "COMPLETED"})
            return httpx.Response(200, json={"video": {"url": "https://fal.test/v.mp4"}})

        adapter = FalAdapter(client_for(handler), base_url="https://queue.fal.test", sleep=no_sleep)
        request = GenerationRequest(prompt="koi pond", reference_image_url="https://img.test/koi.png")

        handle, artifact = await adapter.submit_and_wait(request, "fal-key")

        base = "/fal-ai/hunyuan-video/image-to-video"
        assert handle.context["model"] == "fal-ai/hunyuan-video/image-to-video"
        assert seen == [
            ("POST", base),
            ("GET", f"{base}/requests/req-9/status"),
            ("GET", f"{base}/requests/req-9/status"),
            ("GET", f"{base}/requests/req-9"),
        ]
        assert artifact.url == "https://fal.test/v.mp4"

    @pytest.mark.asyncio
    async def test_text_to_video_model_path(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if request.method == "POST":
                return httpx.Response(200, json={"request_id": "req-1"})
            if request.url.path.endswith("/status"):
                return httpx.Response(200, json={"status": "COMPLETED"})
            return httpx.Response(200, json={"video": {"url": "https://fal.test/t.mp4"}})

        adapter = FalAdapter(client_for(handler), base_url="https://queue.fal.test", sleep=no_sleep)

        await adapter.submit_and_wait(GenerationRequest(prompt="koi pond"), "fal-key")

        assert paths[0] == "/fal-ai/hunyuan-video"
        assert paths[-1] == "/fal-ai/hunyuan-video/requests/req-1"


class TestLuma:
    @pytest.mark.asyncio
    async def test_state_mapping_and_thumbnail(self):
        states = iter(["queued", "dreaming", "completed"])
        polls = []

        def handler(request):
            if request.method == "POST":
                body = json.loads(request.content)
                assert body["aspect_ratio"] == "9:16"
                return httpx.Response(201, json={"id": "gen-4", "state": "queued"})
            polls.append(request.url.path)
            state = next(states)
            payload = {"id": "gen-4", "state": state}
            if state == "completed":
                payload["assets"] = {"video": "https://luma.test/v.mp4", "image": "https://luma.test/v.jpg"}
            return httpx.Response(200, json=payload)

        adapter = LumaAdapter(client_for(handler), base_url="https://luma.test/v1", sleep=no_sleep)
        request = GenerationRequest(prompt="dunes", aspect_ratio=AspectRatio.PORTRAIT)

        _, artifact = await adapter.submit_and_wait(request, "luma-key")

        assert polls == ["/v1/generations/gen-4"] * 3
        assert artifact.url == "https://luma.test/v.mp4"
        assert artifact.thumbnail.url == "https://luma.test/v.jpg"
        assert artifact.thumbnail.content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_failed_generation_is_rejected(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": "gen-5"})
            return httpx.Response(200, json={"state": "failed", "failure_reason": "prompt blocked"})

        adapter = LumaAdapter(client_for(handler), base_url="https://luma.test/v1", sleep=no_sleep)

        with pytest.raises(VendorRejected, match="prompt blocked"):
            await adapter.submit_and_wait(GenerationRequest(prompt="x"), "luma-key")


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_unauthorized_is_credential_error(self):
        adapter = ReplicateAdapter(
            client_for(lambda request: httpx.Response(401, json={"detail": "Invalid token"})),
            base_url="https://replicate.test/v1",
        )

        with pytest.raises(CredentialError):
            await adapter.submit(GenerationRequest(prompt="x"), "r8_bad")

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = ReplicateAdapter(client_for(handler), base_url="https://replicate.test/v1")

        with pytest.raises(VendorTransientFailure):
            await adapter.submit(GenerationRequest(prompt="x"), "r8_ok")

    @pytest.mark.asyncio
    async def test_missing_job_id_is_rejected(self):
        adapter = ReplicateAdapter(
            client_for(lambda request: httpx.Response(201, json={"status": "starting"})),
            base_url="https://replicate.test/v1",
        )

        with pytest.raises(VendorRejected):
            await adapter.submit(GenerationRequest(prompt="x"), "r8_ok")


class TestHuggingFace:
    @pytest.mark.asyncio
    async def test_retries_while_model_loads(self):
        attempts = []
        slept = []

        async def record_sleep(seconds):
            slept.append(seconds)

        def handler(request):
            attempts.append(request.url.path)
            if len(attempts) < 3:
                return httpx.Response(503, json={"error": "Model is currently loading"})
            return httpx.Response(200, content=VIDEO_BYTES, headers={"content-type": "video/mp4"})

        adapter = HuggingFaceAdapter(
            client_for(handler), base_url="https://hf.test/models", model="org/t2v",
            loading_wait=7, max_loading_retries=3, sleep=record_sleep,
        )

        handle, artifact = await adapter.submit_and_wait(GenerationRequest(prompt="rain"), "hf_x")

        assert attempts == ["/models/org/t2v"] * 3
        assert slept == [7, 7]
        assert handle.vendor_job_id.startswith("hf-")
        assert artifact.content == VIDEO_BYTES

    @pytest.mark.asyncio
    async def test_gives_up_after_loading_retries(self):
        adapter = HuggingFaceAdapter(
            client_for(lambda request: httpx.Response(503, text="loading")),
            base_url="https://hf.test/models", model="org/t2v",
            loading_wait=1, max_loading_retries=1, sleep=no_sleep,
        )

        with pytest.raises(VendorTransientFailure):
            await adapter.submit_and_wait(GenerationRequest(prompt="rain"), "hf_x")
