"""
CLI integration tests using Click's test runner.

The node is replaced with the in-memory FakeClient, so nothing here needs
network access.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from eth_abi import encode
from eth_account import Account

from conduit.cli import cli
from conduit.sigil.eth import load_private_key, save_private_key

from conftest import ERC20_ABI, RECIPIENT, TEST_ADDRESS, TEST_KEY, TOKEN_ADDRESS, FakeClient


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def conduit_home(tmp_path: Path) -> Path:
    """Create a temporary ~/.conduit directory."""
    home = tmp_path / ".conduit"
    home.mkdir()
    return home


@pytest.fixture()
def abi_file(tmp_path: Path) -> Path:
    path = tmp_path / "erc20.json"
    path.write_text(json.dumps(ERC20_ABI), encoding="utf-8")
    return path


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestChecksum:
    def test_lowercase_input(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["checksum", TOKEN_ADDRESS])
        assert result.exit_code == 0
        assert "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48" in result.output

    def test_checksummed_input(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["checksum", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"])
        assert result.exit_code == 0
        assert "input is checksummed" in result.output

    def test_bad_checksum_warns(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["checksum", "0xa0B86991c6218b36c1d19D4a2e9Eb0cE3606eB48"])
        assert result.exit_code == 0
        assert "invalid checksum" in result.output

    def test_invalid_address(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["checksum", "0x1234"])
        assert result.exit_code == 1
        assert "ERROR" in result.output


class TestWhoami:
    def test_whoami_with_wallet(self, runner: CliRunner, conduit_home: Path) -> None:
        with patch("conduit.sigil.eth.CONDUIT_ENV", conduit_home / ".env"):
            with patch.dict(os.environ, {"PRIVATE_KEY": TEST_KEY}):
                result = runner.invoke(cli, ["whoami"])
        assert result.exit_code == 0
        assert f"Address: {TEST_ADDRESS}" in result.output

    def test_whoami_without_wallet(self, runner: CliRunner, conduit_home: Path) -> None:
        env = {k: v for k, v in os.environ.items() if k != "PRIVATE_KEY"}
        with patch("conduit.sigil.eth.CONDUIT_ENV", conduit_home / ".env"):
            with patch.dict(os.environ, env, clear=True):
                result = runner.invoke(cli, ["whoami"])
        assert result.exit_code == 1
        assert "No wallet found." in result.output


class TestKeyFile:
    def test_save_and_load(self, conduit_home: Path) -> None:
        account = Account.create()
        private_key, address = "0x" + bytes(account.key).hex(), account.address
        env_path = save_private_key(private_key, conduit_home / ".env")
        with patch.dict(os.environ, {}, clear=True):
            assert load_private_key(env_path) == private_key
        assert address.startswith("0x") and len(address) == 42


class TestCall:
    def test_call_prints_outputs(self, runner: CliRunner, abi_file: Path) -> None:
        client = FakeClient(call_result="0x" + encode(["uint256"], [1000]).hex())
        with patch("conduit.theurgy.invoke.RpcClient", return_value=client):
            result = runner.invoke(
                cli,
                [
                    "call",
                    "--contract", TOKEN_ADDRESS,
                    "--function", "balanceOf",
                    "--args", json.dumps([TEST_ADDRESS]),
                    "--abi", str(abi_file),
                ],
            )
        assert result.exit_code == 0, result.output
        assert "0: 1000" in result.output

    def test_call_empty_response(self, runner: CliRunner, abi_file: Path) -> None:
        with patch("conduit.theurgy.invoke.RpcClient", return_value=FakeClient()):
            result = runner.invoke(
                cli,
                [
                    "call",
                    "--contract", TOKEN_ADDRESS,
                    "--function", "balanceOf",
                    "--args", json.dumps([TEST_ADDRESS]),
                    "--abi", str(abi_file),
                ],
            )
        assert result.exit_code == 1
        assert "Empty response" in result.output

    def test_call_rejects_non_array_args(self, runner: CliRunner, abi_file: Path) -> None:
        result = runner.invoke(
            cli,
            ["call", "--contract", TOKEN_ADDRESS, "--function", "balanceOf",
             "--args", "{}", "--abi", str(abi_file)],
        )
        assert result.exit_code != 0
        assert "JSON array" in result.output


class TestInvoke:
    def test_invoke_confirms(self, runner: CliRunner, abi_file: Path, conduit_home: Path) -> None:
        client = FakeClient(receipts=[{"status": "0x1"}])
        with patch("conduit.sigil.eth.CONDUIT_ENV", conduit_home / ".env"):
            with patch.dict(os.environ, {"PRIVATE_KEY": TEST_KEY}):
                with patch("conduit.theurgy.invoke.RpcClient", return_value=client):
                    result = runner.invoke(
                        cli,
                        [
                            "invoke",
                            "--contract", TOKEN_ADDRESS,
                            "--function", "transfer",
                            "--args", json.dumps([RECIPIENT, 5]),
                            "--abi", str(abi_file),
                            "--chain-id", "1",
                        ],
                    )
        assert result.exit_code == 0, result.output
        assert "SUCCESS" in result.output
        assert client.calls == [
            "gas_price",
            "estimate_gas",
            "get_nonce",
            "send_raw_transaction",
            "get_transaction_receipt",
        ]


class TestReceipt:
    def test_receipt_prints_json(self, runner: CliRunner) -> None:
        client = FakeClient(receipts=[{"status": "0x1", "blockNumber": "0x2"}])
        with patch("conduit.theurgy.deploy.RpcClient", return_value=client):
            result = runner.invoke(cli, ["receipt", "0x" + "ab" * 32])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"status": "0x1", "blockNumber": "0x2"}


class TestDeploy:
    DEPLOYED = "0x5fbdb2315678afecb367f032d93f642f64180aa3"

    def _artifact(self, tmp_path: Path, bytecode: object) -> Path:
        path = tmp_path / "Token.json"
        path.write_text(json.dumps({"abi": ERC20_ABI, "bytecode": bytecode}), encoding="utf-8")
        return path

    def _deploy(self, runner: CliRunner, conduit_home: Path, client: FakeClient, artifact: Path):
        with patch("conduit.sigil.eth.CONDUIT_ENV", conduit_home / ".env"):
            with patch.dict(os.environ, {"PRIVATE_KEY": TEST_KEY}):
                with patch("conduit.theurgy.deploy.RpcClient", return_value=client):
                    return runner.invoke(
                        cli,
                        [
                            "deploy",
                            "--artifact", str(artifact),
                            "--args", json.dumps(["Token", 1000]),
                            "--chain-id", "1",
                        ],
                    )

    def test_deploy_prints_address(
        self, runner: CliRunner, tmp_path: Path, conduit_home: Path
    ) -> None:
        client = FakeClient(receipts=[{"status": "0x1", "contractAddress": self.DEPLOYED}])
        artifact = self._artifact(tmp_path, {"object": "0x6080"})
        result = self._deploy(runner, conduit_home, client, artifact)
        assert result.exit_code == 0, result.output
        assert f"SUCCESS: Deployed at {self.DEPLOYED}" in result.output
        assert client.calls == [
            "gas_price",
            "estimate_gas_for_deployment",
            "get_nonce",
            "send_raw_transaction",
            "get_transaction_receipt",
        ]
        assert client.messages[0] == b"\x60\x80" + encode(["string", "uint256"], ["Token", 1000])

    def test_artifact_without_bytecode(
        self, runner: CliRunner, tmp_path: Path, conduit_home: Path
    ) -> None:
        client = FakeClient()
        artifact = self._artifact(tmp_path, "0x")
        result = self._deploy(runner, conduit_home, client, artifact)
        assert result.exit_code == 1
        assert "Deployment failed" in result.output
        assert client.calls == []
