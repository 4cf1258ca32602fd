from datetime import date

import pytest

from license_tool import verifier
from license_tool.generator import generate
from license_tool.signing import generate_keypair, private_key_to_pem, public_key_to_pem

TODAY = date(2026, 3, 1)
MACHINE = "ABC12345"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the real home directory and environment."""
    for name in (
        "LICENSE_TOOL_MAX_BATCH_COUNT",
        "LICENSE_TOOL_PRIVATE_KEY_PATH",
        "LICENSE_TOOL_PRIVATE_KEY_PASSWORD",
        "LICENSE_TOOL_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LICENSE_TOOL_LICENSE_PATH", str(tmp_path / "state" / "license.json"))
    verifier.embedded_verifier.cache_clear()
    yield
    verifier.embedded_verifier.cache_clear()


@pytest.fixture(scope="session")
def keypair():
    return generate_keypair()


@pytest.fixture
def private_key(keypair):
    return keypair[0]


@pytest.fixture
def public_key(keypair):
    return keypair[1]


@pytest.fixture
def other_public_key():
    return generate_keypair()[1]


@pytest.fixture
def key_files(tmp_path, keypair):
    private_path = tmp_path / "keys" / "private_key.pem"
    public_path = tmp_path / "keys" / "public_key.pem"
    private_path.parent.mkdir(parents=True)
    private_path.write_bytes(private_key_to_pem(keypair[0]))
    public_path.write_bytes(public_key_to_pem(keypair[1]))
    return private_path, public_path


@pytest.fixture
def issue(private_key):
    def _issue(tier="monthly", machine_id=MACHINE, activation_date=TODAY, count=1):
        return generate(tier, machine_id, activation_date, count, private_key=private_key)
    return _issue


@pytest.fixture
def monthly_key(issue):
    return issue()[0].license_key
