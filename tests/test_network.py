"""Tests for the network client, deadlines and failure classification."""

import asyncio
import json

import httpx
import pytest

from conftest import API_URL


@pytest.fixture
def network(http_client):
    from washsync.network import NetworkClient

    return NetworkClient(API_URL, http_client=http_client)


class ManualScheduler:
    """Scheduler whose timers fire only when told to."""

    class Handle:
        def __init__(self):
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        handle = self.Handle()
        self.timers.append((delay, callback, handle))
        return handle

    def fire(self):
        for _, callback, handle in self.timers:
            if not handle.cancelled:
                callback()


class TestDeadline:
    """Tests for Deadline and CancellationSignal."""

    def test_expiry_trips_signal(self):
        """Test that firing the timer cancels with reason 'deadline'."""
        from washsync.network import Deadline

        scheduler = ManualScheduler()
        deadline = Deadline(10.0, scheduler=scheduler)
        signal = deadline.start()

        assert scheduler.timers[0][0] == 10.0
        assert not signal.cancelled

        scheduler.fire()

        assert signal.cancelled
        assert deadline.expired
        assert signal.reason == "deadline"

    def test_stop_disarms_timer(self):
        """Test that a stopped deadline never trips."""
        from washsync.network import Deadline

        scheduler = ManualScheduler()
        with Deadline(5.0, scheduler=scheduler) as signal:
            pass
        scheduler.fire()

        assert not signal.cancelled

    def test_manual_cancel_is_not_expiry(self):
        """Test that an explicit cancel keeps its own reason."""
        from washsync.network import CancellationSignal, Deadline

        signal = CancellationSignal()
        deadline = Deadline(5.0, signal, scheduler=ManualScheduler())
        deadline.start()
        signal.cancel("user")
        signal.cancel("deadline")

        assert signal.reason == "user"
        assert not deadline.expired


class TestRequest:
    """Tests for request construction and decoding."""

    @pytest.mark.asyncio
    async def test_bearer_and_accept_headers(self, network, backend):
        """Test that the token and JSON accept header are sent."""
        backend.reply("GET", "/api/v1/visitor/bookinglist", {"success": True, "data": {"bookinglist": []}})

        envelope = await network.request("GET", "/api/v1/visitor/bookinglist", token="tok-1")

        sent = backend.requests[0]
        assert sent.headers["Authorization"] == "Bearer tok-1"
        assert sent.headers["Accept"] == "application/json"
        assert str(sent.url) == f"{API_URL}/api/v1/visitor/bookinglist"
        assert envelope.ok
        assert envelope.data == {"bookinglist": []}

    @pytest.mark.asyncio
    async def test_no_token_no_authorization_header(self, network, backend):
        """Test that unauthenticated calls carry no bearer header."""
        backend.reply("POST", "/api/v1/auth/visitor/login", {"success": True, "data": {}})

        await network.request("POST", "/api/v1/auth/visitor/login", json={"email": "a@b.c"})

        assert "Authorization" not in backend.requests[0].headers

    @pytest.mark.asyncio
    async def test_json_body(self, network, backend):
        """Test that JSON payloads are encoded as JSON."""
        backend.reply("POST", "/api/v1/visitor/cancle-booking", {"success": True})

        await network.request("POST", "/api/v1/visitor/cancle-booking", token="t", json={"booking_id": "9"})

        sent = backend.requests[0]
        assert sent.headers["Content-Type"] == "application/json"
        assert json.loads(sent.content) == {"booking_id": "9"}

    @pytest.mark.asyncio
    async def test_form_body(self, network, backend):
        """Test that form payloads are url-encoded."""
        backend.reply("POST", "/api/v1/visitor/booknow", {"success": True})

        await network.request("POST", "/api/v1/visitor/booknow", token="t", form={"vehicle_no": "AB 12"})

        sent = backend.requests[0]
        assert sent.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert sent.content == b"vehicle_no=AB+12"

    @pytest.mark.asyncio
    async def test_bare_list_body(self, network, backend):
        """Test that a top-level list is exposed as data."""
        backend.reply("GET", "/api/v1/user/faqlist", [{"id": 1}])

        envelope = await network.request("GET", "/api/v1/user/faqlist")

        assert envelope.data == [{"id": 1}]
        assert envelope.ok


class TestFailureClassification:
    """Tests for mapping failures onto the error taxonomy."""

    @pytest.mark.asyncio
    async def test_deadline_aborts_request(self, http_client, backend):
        """Test that a hung call is abandoned with a timeout error."""
        from washsync.errors import ErrorKind, RequestTimeoutError
        from washsync.network import NetworkClient

        scheduler = ManualScheduler()
        aborted = asyncio.Event()

        async def hang(request):
            scheduler.fire()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                aborted.set()
                raise

        backend.route("GET", "/slow", hang)
        network = NetworkClient(API_URL, http_client=http_client, scheduler=scheduler)

        with pytest.raises(RequestTimeoutError) as exc_info:
            await network.request("GET", "/slow", timeout=10.0)

        assert exc_info.value.kind is ErrorKind.TIMEOUT
        assert aborted.is_set()

    @pytest.mark.slow
    @pytest.mark.asyncio
    async def test_deadline_with_real_timer(self, network, backend):
        """Test the default loop-based timer."""
        from washsync.errors import RequestTimeoutError

        async def hang(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        backend.route("GET", "/slow", hang)

        with pytest.raises(RequestTimeoutError):
            await network.request("GET", "/slow", timeout=0.05)

    @pytest.mark.asyncio
    async def test_fast_response_beats_deadline(self, http_client, backend):
        """Test that a response already available is not discarded."""
        from washsync.network import NetworkClient

        backend.reply("GET", "/fast", {"success": True, "data": 1})
        scheduler = ManualScheduler()
        network = NetworkClient(API_URL, http_client=http_client, scheduler=scheduler)

        envelope = await network.request("GET", "/fast", timeout=10.0)

        assert envelope.data == 1
        assert scheduler.timers[0][2].cancelled

    @pytest.mark.asyncio
    async def test_transport_failure(self, network, backend):
        """Test that a connection failure is a network error."""
        from washsync.errors import ErrorKind, NetworkError

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend.route("GET", "/down", refuse)

        with pytest.raises(NetworkError) as exc_info:
            await network.request("GET", "/down")
        assert exc_info.value.kind is ErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_transport_timeout(self, network, backend):
        """Test that an httpx timeout is reported as a timeout."""
        from washsync.errors import RequestTimeoutError

        def time_out(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        backend.route("GET", "/stall", time_out)

        with pytest.raises(RequestTimeoutError):
            await network.request("GET", "/stall")

    @pytest.mark.asyncio
    async def test_server_error(self, network, backend):
        """Test that a 5xx is an HTTP error with status and message."""
        from washsync.errors import ErrorKind, HttpError

        backend.reply("GET", "/boom", {"success": False, "message": "Server is having a moment"}, status=500)

        with pytest.raises(HttpError) as exc_info:
            await network.request("GET", "/boom")
        assert exc_info.value.kind is ErrorKind.HTTP
        assert exc_info.value.status == 500
        assert exc_info.value.message == "Server is having a moment"

    @pytest.mark.asyncio
    async def test_unauthorized(self, network, backend):
        """Test that 401 is distinguishable from other HTTP errors."""
        from washsync.errors import AuthenticationError, ErrorKind

        backend.reply("GET", "/private", {"message": "Unauthenticated."}, status=401)

        with pytest.raises(AuthenticationError) as exc_info:
            await network.request("GET", "/private", token="expired")
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED
        assert exc_info.value.status == 401

    @pytest.mark.asyncio
    async def test_unauthorized_empty_body(self, network, backend):
        """Test that a bodiless 401 is still an authentication error."""
        from washsync.errors import AuthenticationError

        backend.route("GET", "/private", lambda request: httpx.Response(401))

        with pytest.raises(AuthenticationError):
            await network.request("GET", "/private")

    @pytest.mark.asyncio
    async def test_validation_errors(self, network, backend):
        """Test that per-field messages are preserved."""
        from washsync.errors import ErrorKind, ValidationError

        backend.reply(
            "POST",
            "/api/v1/visitor/booknow",
            {
                "success": False,
                "message": "The given data was invalid.",
                "errors": {"vehicle_no": ["The vehicle no field is required."], "booking_time": "Slot taken"},
            },
            status=422,
        )

        with pytest.raises(ValidationError) as exc_info:
            await network.request("POST", "/api/v1/visitor/booknow", form={})
        error = exc_info.value
        assert error.kind is ErrorKind.VALIDATION
        assert error.status == 422
        assert error.fields == {
            "vehicle_no": ["The vehicle no field is required."],
            "booking_time": ["Slot taken"],
        }
        assert error.message == "The vehicle no field is required."

    @pytest.mark.asyncio
    async def test_nested_validation_errors(self, network, backend):
        """Test field errors nested under data."""
        from washsync.errors import ValidationError

        backend.reply(
            "POST",
            "/edit",
            {"success": False, "data": {"errors": {"phone": ["Invalid phone number"]}}},
            status=400,
        )

        with pytest.raises(ValidationError) as exc_info:
            await network.request("POST", "/edit", json={})
        assert exc_info.value.fields == {"phone": ["Invalid phone number"]}

    @pytest.mark.asyncio
    async def test_success_false_on_200(self, network, backend):
        """Test that a failed envelope with a 2xx status is still a failure."""
        from washsync.errors import HttpError

        backend.reply("POST", "/api/v1/visitor/cancle-booking", {"success": False, "message": "Already cancelled"})

        with pytest.raises(HttpError) as exc_info:
            await network.request("POST", "/api/v1/visitor/cancle-booking", json={})
        assert exc_info.value.message == "Already cancelled"

    @pytest.mark.asyncio
    async def test_empty_success_body(self, network, backend):
        """Test that a 200 with no body is unusable."""
        from washsync.errors import NetworkError

        backend.route("GET", "/empty", lambda request: httpx.Response(200))

        with pytest.raises(NetworkError):
            await network.request("GET", "/empty")

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, network, backend):
        """Test that an HTML page on 200 is unusable."""
        from washsync.errors import NetworkError

        backend.route("GET", "/html", lambda request: httpx.Response(200, text="<html>maintenance</html>"))

        with pytest.raises(NetworkError):
            await network.request("GET", "/html")

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, network, backend):
        """Test that an HTML error page keeps its status."""
        from washsync.errors import HttpError

        backend.route("GET", "/gateway", lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(HttpError) as exc_info:
            await network.request("GET", "/gateway")
        assert exc_info.value.status == 502


class TestExtractFieldErrors:
    """Tests for locating field errors in response bodies."""

    def test_top_level(self):
        """Test errors at the top level."""
        from washsync.network import extract_field_errors

        assert extract_field_errors({"errors": {"email": ["taken"]}}) == {"email": ["taken"]}

    def test_double_nested(self):
        """Test errors under data.data."""
        from washsync.network import extract_field_errors

        body = {"data": {"data": {"errors": {"name": "required"}}}}
        assert extract_field_errors(body) == {"name": ["required"]}

    def test_first_mapping_inside_data(self):
        """Test the fallback to any field mapping inside data."""
        from washsync.network import extract_field_errors

        body = {"data": {"validation": {"current_password": ["is incorrect"]}}}
        assert extract_field_errors(body) == {"current_password": ["is incorrect"]}

    def test_none_found(self):
        """Test bodies without field errors."""
        from washsync.network import extract_field_errors

        assert extract_field_errors({"message": "nope"}) is None
        assert extract_field_errors(["not", "a", "dict"]) is None
        assert extract_field_errors({"data": {"count": 3}}) is None
