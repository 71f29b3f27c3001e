"""
Jsonia Dispatcher -- Core Action Tests

Batches keep going past unknown, invalid and failing actions. Core actions
cover state, selector-based DOM updates, host interaction, named APIs,
validation and control flow.
"""

import json

import httpx
import pytest
import pytest_asyncio

from jsonia.runtime.dom import DomEvent, has_class
from jsonia.runtime.tests.conftest import make_runtime

FORM_HTML = """
<body>
  <form id="signup">
    <input name="email" value="nope">
    <span id="err" class="error hidden"></span>
    <button id="go">Go</button>
  </form>
  <p id="msg">hello</p>
</body>
"""


# ============================================================================
# Batches
# ============================================================================


class TestBatches:
    @pytest.mark.asyncio
    async def test_unknown_action_does_not_abort_batch(self, runtime):
        await runtime.execute_actions(
            [
                {"type": "setState", "key": "x", "value": 1},
                {"type": "bogus.unknown"},
                {"type": "setState", "key": "y", "value": 2},
            ]
        )
        assert runtime.get_state("x") == 1
        assert runtime.get_state("y") == 2

    @pytest.mark.asyncio
    async def test_invalid_action_is_skipped(self, runtime):
        await runtime.execute_actions([{"type": "setState", "value": 1}, 42, {"type": "setState", "key": "ok", "value": True}])
        assert runtime.get_state() == {"ok": True}

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_abort_batch(self, runtime):
        async def boom(rt, action, event):
            raise RuntimeError("handler exploded")

        runtime.register_action_handler("boom", boom)
        await runtime.execute_actions([{"type": "boom"}, {"type": "setState", "key": "after", "value": 1}])
        assert runtime.get_state("after") == 1

    @pytest.mark.asyncio
    async def test_non_list_is_ignored(self, runtime):
        await runtime.execute_actions({"type": "setState", "key": "x", "value": 1})
        await runtime.execute_actions(None)
        assert runtime.get_state("x") is None

    @pytest.mark.asyncio
    async def test_registered_handler_overrides_core(self, runtime):
        seen = []

        async def quiet_alert(rt, action, event):
            seen.append(action["message"])

        runtime.register_action_handler("alert", quiet_alert)
        await runtime.execute_action({"type": "alert", "message": "hi"})
        assert seen == ["hi"]
        assert runtime.host.alerts == []

    @pytest.mark.asyncio
    async def test_computed_follows_set_state(self):
        rt = make_runtime()
        await rt.init(
            {
                "state": {"count": 0},
                "computed": {"doubled": {"multiply": ["{{count}}", 2]}},
                "initialization": [],
            }
        )
        await rt.execute_action({"type": "setState", "key": "count", "value": 5})
        assert rt.get_state("count") == 5
        assert rt.get_state("doubled") == 10


# ============================================================================
# Custom actions
# ============================================================================


class TestCustomActions:
    @pytest.mark.asyncio
    async def test_bare_string_calls_custom_action_with_event(self, runtime):
        calls = []

        async def hello(params):
            calls.append(params)
            return "done"

        runtime.register_action("hello", hello)
        result = await runtime.execute_action("hello", "evt")
        assert result == "done"
        assert calls == [{"event": "evt"}]

    @pytest.mark.asyncio
    async def test_unknown_bare_string_is_noop(self, runtime):
        assert await runtime.execute_action("nobody") is None

    @pytest.mark.asyncio
    async def test_function_action_passes_params(self, runtime):
        calls = []

        async def greet(params):
            calls.append(params)

        runtime.register_action("greet", greet)
        await runtime.execute_action({"type": "function", "name": "greet", "params": {"who": "Ada"}})
        assert calls == [{"who": "Ada", "event": None}]


# ============================================================================
# State and control flow
# ============================================================================


class TestControlFlow:
    @pytest.mark.asyncio
    async def test_set_state_evaluates_expressions(self, runtime):
        runtime.set_state("n", 4)
        await runtime.execute_action({"type": "setState", "key": "m", "value": {"add": ["{{n}}", 1]}})
        await runtime.execute_action({"type": "setState", "key": "label", "value": "n is {{n}}"})
        assert runtime.get_state("m") == 5
        assert runtime.get_state("label") == "n is 4"

    @pytest.mark.asyncio
    async def test_if_then_else(self, runtime):
        action = {
            "type": "if",
            "condition": {"gt": ["{{n}}", 3]},
            "then": [{"type": "setState", "key": "size", "value": "big"}],
            "else": [{"type": "setState", "key": "size", "value": "small"}],
        }
        runtime.set_state("n", 5)
        await runtime.execute_action(action)
        assert runtime.get_state("size") == "big"

        runtime.set_state("n", 1)
        await runtime.execute_action(action)
        assert runtime.get_state("size") == "small"

    @pytest.mark.asyncio
    async def test_if_without_else(self, runtime):
        await runtime.execute_action({"type": "if", "condition": "{{missing}}", "then": [{"type": "setState", "key": "x", "value": 1}]})
        assert runtime.get_state("x") is None

    @pytest.mark.asyncio
    async def test_sequence(self, runtime):
        await runtime.execute_action(
            {
                "type": "sequence",
                "steps": [
                    {"type": "setState", "key": "a", "value": 1},
                    {"type": "setState", "key": "b", "value": {"add": ["{{a}}", 1]}},
                ],
            }
        )
        assert runtime.get_state("b") == 2

    @pytest.mark.asyncio
    async def test_emit_dispatches_document_event(self, runtime):
        received = []
        runtime.document.add_event_listener("saved", received.append)
        runtime.set_state("n", 3)

        await runtime.execute_action({"type": "emit", "name": "saved", "data": "{{n}}"})

        assert len(received) == 1
        assert received[0].type == "saved"
        assert received[0].detail == 3


# ============================================================================
# Host interaction and DOM by selector
# ============================================================================


class TestHostAndDom:
    @pytest.mark.asyncio
    async def test_alert_and_navigate(self, runtime):
        runtime.set_state({"name": "Ada", "id": 7})
        await runtime.execute_actions(
            [
                {"type": "alert", "message": "Hi {{name}}"},
                {"type": "navigate", "url": "/users/{{id}}"},
            ]
        )
        assert runtime.host.alerts == ["Hi Ada"]
        assert runtime.host.location == "/users/7"

    @pytest.mark.asyncio
    async def test_console_value_and_message(self, runtime):
        runtime.set_state({"user": {"name": "Ada"}, "n": 3})
        await runtime.execute_actions(
            [
                {"type": "console", "value": "{{user}}"},
                {"type": "console", "message": "n={{n}}"},
            ]
        )
        assert runtime.host.console == [{"name": "Ada"}, "n=3"]

    @pytest.mark.asyncio
    async def test_update_dom_text_and_attribute(self, runtime):
        runtime.set_state("name", "Ada")
        await runtime.execute_actions(
            [
                {"type": "updateDOM", "target": "#msg", "content": "Hi {{name}}"},
                {"type": "updateDOM", "target": "#msg", "attribute": "title", "content": "{{name}}"},
            ]
        )
        msg = runtime.document.query_selector("#msg")
        assert msg.get_text() == "Hi Ada"
        assert msg["title"] == "Ada"

    @pytest.mark.asyncio
    async def test_update_dom_missing_target(self, runtime):
        await runtime.execute_action({"type": "updateDOM", "target": "#nope", "content": "x"})
        assert runtime.document.query_selector("#nope") is None

    @pytest.mark.asyncio
    async def test_class_actions_apply_to_every_match(self, runtime):
        items = runtime.document.query_selector_all(".item")
        await runtime.execute_action({"type": "addClass", "target": ".item", "className": "active"})
        assert all(has_class(i, "active") for i in items)

        await runtime.execute_action({"type": "toggleClass", "target": ".item", "className": "active"})
        assert not any(has_class(i, "active") for i in items)

        await runtime.execute_action({"type": "addClass", "target": "#msg", "className": "shown"})
        await runtime.execute_action({"type": "removeClass", "target": "#msg", "className": "shown"})
        assert not runtime.document.query_selector("#msg").has_attr("class")

    @pytest.mark.asyncio
    async def test_state_display_tracks_state(self, runtime):
        await runtime.execute_action({"type": "setState", "key": "shown", "value": [1, 2]})
        display = runtime.document.get_element_by_id("stateDisplay")
        assert json.loads(display.get_text()) == {"shown": [1, 2]}


# ============================================================================
# Named APIs
# ============================================================================


def api_handler(seen):
    def handler(request):
        seen.append(request)
        if request.url.path == "/users/7":
            return httpx.Response(200, json={"id": 7, "name": "Ada"})
        if request.url.path == "/save":
            return httpx.Response(201, json={"saved": True})
        if request.url.path == "/down":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(500, text="not json")

    return handler


API_DEFINITION = {
    "state": {"current": 7, "name": "Ada"},
    "apis": {
        "getUser": {"url": "/users/{{userId}}"},
        "save": {"url": "/save", "method": "POST", "body": {"name": "{{name}}", "id": "{{userId}}"}},
        "broken": {"url": "/broken"},
        "down": {"url": "/down"},
    },
    "initialization": [],
}


@pytest_asyncio.fixture
async def api_runtime():
    seen = []
    async with httpx.AsyncClient(transport=httpx.MockTransport(api_handler(seen)), base_url="https://api.test") as client:
        rt = make_runtime(http_client=client)
        await rt.init(API_DEFINITION)
        rt.requests = seen
        yield rt


class TestApi:
    @pytest.mark.asyncio
    async def test_get_with_params_and_store(self, api_runtime):
        rt = api_runtime
        await rt.execute_action(
            {
                "type": "api",
                "name": "getUser",
                "params": {"userId": "{{current}}"},
                "storeIn": "user",
                "onSuccess": [{"type": "setState", "key": "loaded", "value": True}],
                "onError": [{"type": "setState", "key": "failed", "value": True}],
            }
        )
        assert str(rt.requests[0].url) == "https://api.test/users/7"
        assert rt.get_state("user") == {"id": 7, "name": "Ada"}
        assert rt.get_state("loaded") is True
        assert rt.get_state("failed") is None

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self, api_runtime):
        rt = api_runtime
        result = await rt.execute_action({"type": "api", "name": "save", "params": {"userId": "{{current}}"}})
        request = rt.requests[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {"name": "Ada", "id": "7"}
        assert result.success
        assert result.status_code == 201

    @pytest.mark.asyncio
    async def test_unparseable_response_runs_on_error(self, api_runtime):
        rt = api_runtime
        await rt.execute_action(
            {
                "type": "api",
                "name": "broken",
                "storeIn": "data",
                "onSuccess": [{"type": "setState", "key": "loaded", "value": True}],
                "onError": [{"type": "setState", "key": "failed", "value": True}],
            }
        )
        assert rt.get_state("failed") is True
        assert rt.get_state("loaded") is None
        assert rt.get_state("data") is None

    @pytest.mark.asyncio
    async def test_transport_error_is_contained(self, api_runtime):
        result = await api_runtime.apis.call("down")
        assert result.success is False
        assert "connection refused" in result.error

    @pytest.mark.asyncio
    async def test_unknown_api_is_noop(self, api_runtime):
        rt = api_runtime
        result = await rt.execute_action({"type": "api", "name": "nope", "onError": [{"type": "setState", "key": "failed", "value": True}]})
        assert result is None
        assert rt.get_state("failed") is None
        assert rt.requests == []

    @pytest.mark.asyncio
    async def test_registry_call_of_unknown_name(self, api_runtime):
        result = await api_runtime.apis.call("nope")
        assert result.success is False
        assert result.error == "Unknown API: nope"


# ============================================================================
# Validation and submit
# ============================================================================


@pytest_asyncio.fixture
async def form_runtime():
    rt = make_runtime(FORM_HTML)
    await rt.init(
        {
            "validation": {"email": [{"required": True}, {"type": "email", "message": "Bad email"}]},
            "initialization": [],
        }
    )
    return rt


class TestValidation:
    @pytest.mark.asyncio
    async def test_validate_writes_errors(self, form_runtime):
        rt = form_runtime
        field = rt.document.query_selector("input[name=email]")
        err = rt.document.get_element_by_id("err")
        action = {"type": "validate", "errorTarget": "#err", "output": "check"}

        await rt.execute_action(action, DomEvent(type="blur", target=field))
        assert err.get_text() == "Bad email"
        assert not has_class(err, "hidden")
        assert rt.get_state("check") == {"valid": False, "errors": ["Bad email"]}

        field["value"] = "ada@example.com"
        await rt.execute_action(action, DomEvent(type="blur", target=field))
        assert err.get_text() == ""
        assert has_class(err, "hidden")
        assert rt.get_state("check") == {"valid": True, "errors": []}

    @pytest.mark.asyncio
    async def test_validate_without_element_target(self, form_runtime):
        assert await form_runtime.execute_action({"type": "validate"}, DomEvent(type="blur")) is None

    @pytest.mark.asyncio
    async def test_submit_invalid_form(self, form_runtime):
        rt = form_runtime
        form = rt.document.get_element_by_id("signup")
        rt.document.query_selector("input[name=email]")["value"] = ""
        event = DomEvent(type="submit", target=form)

        await rt.execute_action(
            {
                "type": "submit",
                "onValid": [{"type": "setState", "key": "sent", "value": True}],
                "onInvalid": [{"type": "setState", "key": "sent", "value": False}],
                "output": "result",
            },
            event,
        )
        assert event.default_prevented
        assert rt.get_state("sent") is False
        assert rt.get_state("result")["results"]["email"]["errors"] == ["email is required", "Bad email"]

    @pytest.mark.asyncio
    async def test_submit_valid_form_from_inner_target(self, form_runtime):
        rt = form_runtime
        rt.document.query_selector("input[name=email]")["value"] = "ada@example.com"
        button = rt.document.get_element_by_id("go")

        await rt.execute_action(
            {"type": "submit", "onValid": [{"type": "setState", "key": "sent", "value": True}]},
            DomEvent(type="submit", target=button),
        )
        assert rt.get_state("sent") is True
