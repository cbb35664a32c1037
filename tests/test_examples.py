"""Tests for the example servers."""

import pytest
import importlib.util
import json
import os
import pathlib
import sys

from tinymcp.protocol import CALL_TOOL, READ_RESOURCE, CallToolParams, JSONRPCRequest, ReadResourceParams


EXAMPLES = pathlib.Path(__file__).parent.parent / "examples"


def load_example(name):
    spec = importlib.util.spec_from_file_location(f"example_{name}", EXAMPLES / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


class TestCalculator:
    @pytest.mark.asyncio
    async def test_plus_and_minus(self):
        server = load_example("calculator").create_calculator()

        plus = json.loads(await server.handle(JSONRPCRequest(
            "1", CALL_TOOL, CallToolParams(name="plus", arguments={"a": 2, "b": 3}),
        ).to_json()))
        minus = json.loads(await server.handle(JSONRPCRequest(
            "2", CALL_TOOL, CallToolParams(name="minus", arguments={"a": 2, "b": 3}),
        ).to_json()))

        assert plus["result"]["content"][0]["text"] == "5"
        assert minus["result"]["content"][0]["text"] == "-1"


class TestFsServer:
    @pytest.fixture
    def fs(self):
        return load_example("fs_server")

    @pytest.fixture(autouse=True)
    def restore_cwd(self):
        cwd = os.getcwd()
        yield
        os.chdir(cwd)

    @pytest.mark.asyncio
    async def test_ls(self, fs, tmp_path):
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "a.txt").write_text("a")
        server = fs.create_fs_server()

        response = await server.handle_request(
            JSONRPCRequest("1", CALL_TOOL, CallToolParams(name="ls", arguments={"path": str(tmp_path)}))
        )
        names = [c["text"] for c in response.to_dict()["result"]["content"]]
        assert names == ["a.txt", "b.txt"]

    @pytest.mark.asyncio
    async def test_ls_not_a_directory(self, fs, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        server = fs.create_fs_server()

        response = await server.handle_request(
            JSONRPCRequest("1", CALL_TOOL, CallToolParams(name="ls", arguments={"path": str(path)}))
        )
        assert response.error.code == -32000
        assert "not a directory" in response.error.data

    @pytest.mark.asyncio
    async def test_cd_and_pwd(self, fs, tmp_path):
        server = fs.create_fs_server()

        await server.handle_request(
            JSONRPCRequest("1", CALL_TOOL, CallToolParams(name="cd", arguments={"path": str(tmp_path)}))
        )
        response = await server.handle_request(JSONRPCRequest("2", CALL_TOOL, CallToolParams(name="pwd")))
        assert response.to_dict()["result"]["content"][0]["text"] == os.path.realpath(str(tmp_path))

    @pytest.mark.asyncio
    async def test_file_resource(self, fs, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        server = fs.create_fs_server(str(path))
        uri = server.resources()[0].uri

        response = await server.handle_request(JSONRPCRequest("1", READ_RESOURCE, ReadResourceParams(uri=uri)))
        assert response.to_dict()["result"]["content"] == [{"type": "text", "text": "hello", "uri": uri}]

        path.unlink()
        response = await server.handle_request(JSONRPCRequest("2", READ_RESOURCE, ReadResourceParams(uri=uri)))
        assert response.error.code == -32000
        assert "not a file" in response.error.data

    @pytest.mark.asyncio
    async def test_demo(self, fs, capsys):
        await fs.run_demo(fs.create_fs_server())
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("res: ")
        assert json.loads(lines[-1][len("res: "):])["result"]["message"]
