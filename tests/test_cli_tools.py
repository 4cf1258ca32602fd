import json

import pandas as pd
import pytest

from license_tool import check_license, embed_public_key, generate_keys, issue_license
from license_tool.signing import load_public_key, public_key_to_b64

from conftest import MACHINE


def test_generate_keys_writes_pair(tmp_path, capsys):
    generate_keys.main(["--out-dir", str(tmp_path)])
    assert (tmp_path / "private_key.pem").exists()
    public_key = load_public_key(tmp_path / "public_key.pem")
    assert public_key_to_b64(public_key) in capsys.readouterr().out

    with pytest.raises(SystemExit):
        generate_keys.main(["--out-dir", str(tmp_path)])
    generate_keys.main(["--out-dir", str(tmp_path), "--force"])


def test_issue_license_prints_records(key_files, capsys):
    private_path, _ = key_files
    issue_license.main([
        "--private-key", str(private_path),
        "--tier", "yearly",
        "--machine-id", MACHINE,
        "--activation-date", "2026-03-01",
        "--count", "2",
    ])
    rows = json.loads(capsys.readouterr().out)
    assert len(rows) == 2
    assert rows[0]["expiration_date"] == "2027-03-01"
    assert rows[0]["days_valid"] == 365


def test_issue_license_uses_environment_key_and_writes_csv(monkeypatch, key_files, tmp_path):
    private_path, _ = key_files
    monkeypatch.setenv("LICENSE_TOOL_PRIVATE_KEY_PATH", str(private_path))
    out = tmp_path / "batch.csv"
    issue_license.main(["--tier", "monthly", "--machine-id", MACHINE, "--count", "3", "--out", str(out)])
    assert len(pd.read_csv(out, dtype=str)) == 3


@pytest.mark.parametrize("extra, message", [
    (["--machine-id", "ABC"], "Machine ID must be at least 8 characters"),
    (["--machine-id", MACHINE, "--count", "500"], "Count must be between 1 and 100"),
    (["--machine-id", MACHINE, "--activation-date", "tomorrow"], "Invalid date format"),
])
def test_issue_license_reports_bad_requests(key_files, extra, message):
    private_path, _ = key_files
    with pytest.raises(SystemExit) as err:
        issue_license.main(["--private-key", str(private_path), "--tier", "monthly"] + extra)
    assert message in str(err.value)


def test_issue_license_requires_private_key():
    with pytest.raises(SystemExit) as err:
        issue_license.main(["--tier", "monthly", "--machine-id", MACHINE])
    assert "private key" in str(err.value)


def _fresh_key(private_path):
    # Activation defaults to the real UTC date so the key is valid right now.
    from license_tool.generator import generate_with_key_file
    return generate_with_key_file(private_path, "monthly", MACHINE)[0].license_key


def test_check_license_verify(key_files, capsys):
    private_path, public_path = key_files
    key = _fresh_key(private_path)
    check_license.main(["--public-key", str(public_path), "--machine-id", MACHINE, "verify", key])
    assert json.loads(capsys.readouterr().out)["valid"] is True

    with pytest.raises(SystemExit) as err:
        check_license.main(["--public-key", str(public_path), "--machine-id", "XYZ98765", "verify", key])
    assert err.value.code == 1
    assert json.loads(capsys.readouterr().out)["error_code"] == "MACHINE_MISMATCH"


def test_check_license_activation_cycle(key_files, tmp_path, capsys):
    private_path, public_path = key_files
    key = _fresh_key(private_path)
    common = ["--public-key", str(public_path), "--machine-id", MACHINE,
              "--license-file", str(tmp_path / "lic.json")]

    check_license.main(common + ["activate", key])
    capsys.readouterr()
    check_license.main(common + ["status"])
    status = json.loads(capsys.readouterr().out)
    assert status["activated"] is True
    assert status["tier"] == "monthly"

    check_license.main(common + ["deactivate"])
    assert "removed" in capsys.readouterr().out
    check_license.main(common + ["status"])
    assert json.loads(capsys.readouterr().out)["activated"] is False


def test_check_license_features(key_files, tmp_path, capsys):
    private_path, public_path = key_files
    common = ["--public-key", str(public_path), "--machine-id", MACHINE,
              "--license-file", str(tmp_path / "lic.json")]

    check_license.main(common + ["features"])
    free = json.loads(capsys.readouterr().out)
    assert free["scan"] is True
    assert free["disk_encryption"] is False
    with pytest.raises(SystemExit) as err:
        check_license.main(common + ["features", "disk_encryption"])
    assert err.value.code == 1
    capsys.readouterr()

    check_license.main(common + ["activate", _fresh_key(private_path)])
    capsys.readouterr()
    check_license.main(common + ["features", "disk_encryption"])
    assert json.loads(capsys.readouterr().out) == {"feature": "disk_encryption", "allowed": True}


def test_check_license_without_embedded_key_is_a_build_error(monkeypatch):
    monkeypatch.setattr(embed_public_key.trust_anchor, "EMBEDDED_PUBLIC_KEYS", {})
    with pytest.raises(SystemExit) as err:
        check_license.main(["--machine-id", MACHINE, "verify", "LKBAA"])
    assert "Build error" in str(err.value)


def test_check_license_info_commands(capsys):
    check_license.main(["--machine-id", MACHINE, "machine-id"])
    assert capsys.readouterr().out.strip() == MACHINE
    check_license.main(["tiers"])
    assert [t["value"] for t in json.loads(capsys.readouterr().out)] == ["monthly", "quarterly", "yearly"]


def test_embed_public_key_writes_anchor(key_files, tmp_path, capsys):
    _, public_path = key_files
    anchor = tmp_path / "anchor.py"
    embed_public_key.main(["--public-key", str(public_path), "--anchor", str(anchor)])
    text = anchor.read_text(encoding="utf-8")
    expected = public_key_to_b64(load_public_key(public_path))
    assert f"1: {expected!r}" in text
    namespace = {}
    exec(text, namespace)
    assert namespace["EMBEDDED_PUBLIC_KEYS"] == {1: expected}


def test_render_empty_anchor():
    namespace = {}
    exec(embed_public_key.render_anchor({}), namespace)
    assert namespace["EMBEDDED_PUBLIC_KEYS"] == {}


def test_embed_check_fails_without_key(monkeypatch):
    monkeypatch.setattr(embed_public_key, "check_embedded", _raise_missing)
    with pytest.raises(SystemExit) as err:
        embed_public_key.main(["--check"])
    assert "Build check failed" in str(err.value)


def _raise_missing(version):
    from license_tool.errors import LicenseConfigError
    raise LicenseConfigError(f"no public key embedded for key version {version}")


def test_embed_requires_existing_file(tmp_path):
    with pytest.raises(SystemExit):
        embed_public_key.main(["--public-key", str(tmp_path / "nope.pem"), "--anchor", str(tmp_path / "a.py")])
