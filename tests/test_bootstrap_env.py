import json
import os

from pigger_timeline import bootstrap_env
from pigger_timeline.data import loader

SERVICE_ACCOUNT = {"type": "service_account", "client_email": "timeline@example.iam.gserviceaccount.com"}


def test_credentials_secret_is_written_through_the_loader(monkeypatch, tmp_path):
    target = tmp_path / "creds.json"
    monkeypatch.setattr(loader, "CREDENTIALS_TMP_PATH", str(target))
    monkeypatch.setattr(bootstrap_env, "_secrets_dict", lambda: {"GOOGLE_CREDENTIALS_JSON": SERVICE_ACCOUNT})
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", str(tmp_path / "missing.json"))

    bootstrap_env._materialize_google_credentials()

    assert os.environ["GOOGLE_APPLICATION_CREDENTIALS"] == str(target)
    assert json.loads(target.read_text(encoding="utf-8")) == SERVICE_ACCOUNT


def test_existing_credentials_file_is_kept(monkeypatch, tmp_path):
    existing = tmp_path / "service-account.json"
    existing.write_text("{}", encoding="utf-8")
    target = tmp_path / "creds.json"
    monkeypatch.setattr(loader, "CREDENTIALS_TMP_PATH", str(target))
    monkeypatch.setattr(bootstrap_env, "_secrets_dict", lambda: {"GOOGLE_CREDENTIALS_JSON": SERVICE_ACCOUNT})
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", str(existing))

    bootstrap_env._materialize_google_credentials()

    assert os.environ["GOOGLE_APPLICATION_CREDENTIALS"] == str(existing)
    assert not target.exists()


def test_non_json_secret_is_ignored(monkeypatch, tmp_path):
    target = tmp_path / "creds.json"
    monkeypatch.setattr(loader, "CREDENTIALS_TMP_PATH", str(target))
    monkeypatch.setattr(bootstrap_env, "_secrets_dict", lambda: {"GOOGLE_CREDENTIALS_JSON": "not json"})
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", str(tmp_path / "missing.json"))

    bootstrap_env._materialize_google_credentials()

    assert os.environ["GOOGLE_APPLICATION_CREDENTIALS"] == str(tmp_path / "missing.json")
    assert not target.exists()
