"""Tests for hark.resolve — source gathering, precedence and coercion."""

import json

import pytest

from hark.config import HandlerConfig
from hark.errors import BodyParseError, InvalidParameter, MissingParameter
from hark.http.request import Request
from hark.params import Param, ParamType, Values, compile_params
from hark.resolve import coerce, gather, path_arguments, resolve


def _request(
    method: str = "GET",
    path: str = "/x",
    query: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    body: bytes = b"",
) -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query,
        "headers": headers or [],
    }
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request.from_asgi(scope, receive)


FORM = (b"content-type", b"application/x-www-form-urlencoded")
JSON = (b"content-type", b"application/json")


class TestPathArguments:
    def test_segments(self) -> None:
        assert path_arguments("/files", "/files/a/b") == ("a", "b")

    def test_route_with_trailing_slash(self) -> None:
        assert path_arguments("/files/", "/files/a/b") == ("a", "b")

    def test_no_suffix(self) -> None:
        assert path_arguments("/files", "/files") == ()
        assert path_arguments("/files/", "/files/") == ()

    def test_keeps_empty_segments(self) -> None:
        assert path_arguments("/", "/a//b/") == ("a", "", "b", "")

    def test_foreign_path(self) -> None:
        assert path_arguments("/files", "/other/a") == ()


class TestGather:
    async def test_cookies(self) -> None:
        req = _request(headers=[(b"cookie", b"a=1; b=2")])
        values, _ = await gather(req, "/x", HandlerConfig())
        assert values == {"a": ["1"], "b": ["2"]}

    async def test_body_beats_cookie(self) -> None:
        req = _request("POST", headers=[(b"cookie", b"a=cookie"), FORM], body=b"a=body")
        values, _ = await gather(req, "/x", HandlerConfig())
        assert values["a"] == ["body"]

    async def test_query_beats_body(self) -> None:
        req = _request(
            "POST", query=b"a=query", headers=[(b"cookie", b"a=cookie"), FORM], body=b"a=body"
        )
        values, _ = await gather(req, "/x", HandlerConfig())
        assert values["a"] == ["query"]

    async def test_body_ignored_for_get(self) -> None:
        req = _request("GET", headers=[FORM], body=b"a=body")
        values, _ = await gather(req, "/x", HandlerConfig())
        assert "a" not in values

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
    async def test_body_methods(self, method: str) -> None:
        req = _request(method, headers=[FORM], body=b"a=body")
        values, _ = await gather(req, "/x", HandlerConfig())
        assert values["a"] == ["body"]

    async def test_form_multi_values(self) -> None:
        req = _request("POST", headers=[FORM], body=b"t=1&t=2")
        values, _ = await gather(req, "/x", HandlerConfig())
        assert values["t"] == ["1", "2"]

    async def test_binary_body_ignored(self) -> None:
        req = _request(
            "PUT",
            query=b"name=file.bin",
            headers=[(b"content-type", b"application/octet-stream")],
            body=b"\xff\xfe\x00binary",
        )
        values, files = await gather(req, "/x", HandlerConfig())
        assert values == {"name": ["file.bin"]}
        assert files == {}

    async def test_text_body_not_parsed_as_form(self) -> None:
        req = _request("POST", headers=[(b"content-type", b"text/plain")], body=b"a=1")
        values, _ = await gather(req, "/x", HandlerConfig())
        assert "a" not in values

    async def test_missing_content_type_parsed_as_form(self) -> None:
        values, _ = await gather(_request("POST", body=b"a=1"), "/x", HandlerConfig())
        assert values["a"] == ["1"]

    async def test_path_embedded(self) -> None:
        values, _ = await gather(_request(path="/x/a=path"), "/x", HandlerConfig())
        assert values["a"] == ["path"]

    async def test_path_embedded_uses_last_segment(self) -> None:
        values, _ = await gather(_request(path="/x/deep/nested/a=1"), "/x", HandlerConfig())
        assert values["a"] == ["1"]

    async def test_path_embedded_never_overrides(self) -> None:
        req = _request(path="/x/a=path", headers=[(b"cookie", b"a=cookie")])
        values, _ = await gather(req, "/x", HandlerConfig())
        assert values["a"] == ["cookie"]

    async def test_body_too_large(self) -> None:
        req = _request("POST", headers=[FORM], body=b"a=" + b"x" * 100)
        with pytest.raises(BodyParseError):
            await gather(req, "/x", HandlerConfig(max_body_size=10))


class TestGatherJson:
    async def _values(self, doc: object) -> dict[str, list[str]]:
        req = _request("POST", headers=[JSON], body=json.dumps(doc).encode())
        values, _ = await gather(req, "/x", HandlerConfig())
        return values

    async def test_strings_and_lists(self) -> None:
        values = await self._values({"s": "v", "tags": ["a", "b"]})
        assert values == {"s": ["v"], "tags": ["a", "b"]}

    async def test_other_values_stringified(self) -> None:
        values = await self._values({"n": 3, "f": 1.5, "b": True, "mixed": [1, "a"], "o": {"k": 1}})
        assert values == {
            "n": ["3"],
            "f": ["1.5"],
            "b": ["true"],
            "mixed": ['[1,"a"]'],
            "o": ['{"k":1}'],
        }

    async def test_null_is_absent(self) -> None:
        assert await self._values({"gone": None}) == {}

    async def test_empty_list_gives_no_values(self) -> None:
        assert await self._values({"tags": []}) == {"tags": []}

    async def test_empty_list_falls_back_to_default(self) -> None:
        values = await self._values({"n": []})
        params = compile_params([Param("n", "int", default="7")])
        resolved, error = resolve(params, values)
        assert error is None
        assert resolved["n"] == Values(ParamType.INT, (7,))

    async def test_empty_list_for_required_is_missing(self) -> None:
        values = await self._values({"n": []})
        _, error = resolve(compile_params([Param("n", required=True)]), values)
        assert isinstance(error, MissingParameter)

    async def test_not_an_object(self) -> None:
        req = _request("POST", headers=[JSON], body=b"[1, 2]")
        with pytest.raises(BodyParseError, match="object"):
            await gather(req, "/x", HandlerConfig())

    async def test_invalid_json(self) -> None:
        req = _request("POST", headers=[JSON], body=b"{nope")
        with pytest.raises(BodyParseError, match="invalid JSON"):
            await gather(req, "/x", HandlerConfig())


class TestCoerce:
    def test_bool_empty_string_is_true(self) -> None:
        (param,) = compile_params([Param("flag", type="bool")])
        assert coerce(param, [""]) == Values(ParamType.BOOL, (True,))

    def test_multi_values(self) -> None:
        (param,) = compile_params([Param("n", type="int")])
        assert coerce(param, ["1", "2", "3"]).items == (1, 2, 3)

    def test_failure_names_value_and_param(self) -> None:
        (param,) = compile_params([Param("n", type="int")])
        with pytest.raises(InvalidParameter) as exc_info:
            coerce(param, ["1", "two"])
        assert exc_info.value.name == "n"
        assert exc_info.value.value == "two"


class TestResolve:
    def test_defaults_for_absent(self) -> None:
        params = compile_params([Param("page", type="int", default="1"), Param("q")])
        resolved, error = resolve(params, {})
        assert error is None
        assert resolved == {
            "page": Values(ParamType.INT, (1,)),
            "q": Values(ParamType.STRING, ("",)),
        }

    def test_undeclared_keys_ignored(self) -> None:
        resolved, error = resolve(compile_params([Param("a")]), {"a": ["1"], "extra": ["x"]})
        assert error is None
        assert set(resolved) == {"a"}

    def test_missing_required(self) -> None:
        params = compile_params([Param("a"), Param("q", required=True), Param("z")])
        resolved, error = resolve(params, {"a": ["1"]})
        assert isinstance(error, MissingParameter)
        assert error.name == "q"
        assert set(resolved) == {"a"}

    def test_empty_list_counts_as_missing(self) -> None:
        _, error = resolve(compile_params([Param("q", required=True)]), {"q": []})
        assert isinstance(error, MissingParameter)

    def test_first_invalid_aborts(self) -> None:
        params = compile_params(
            [Param("a", type="int"), Param("b", type="float"), Param("c", type="bool")]
        )
        resolved, error = resolve(params, {"a": ["1"], "b": ["x"], "c": ["nope"]})
        assert isinstance(error, InvalidParameter)
        assert error.name == "b"
        assert "'x'" in str(error)
        assert set(resolved) == {"a"}
