import pytest

from recruitflow.core import firebase
from recruitflow.core.config import FirebaseConfig, Settings


def test_nested_firebase_config_from_env(monkeypatch):
    monkeypatch.setenv("FIREBASE_CONFIG__project_id", "hypermarket-hr")
    monkeypatch.setenv("FIREBASE_CONFIG__client_email", "svc@hypermarket-hr.iam.gserviceaccount.com")
    monkeypatch.setenv("FIREBASE_CONFIG__private_key", "-----BEGIN KEY-----\\nabc\\n-----END KEY-----")

    config = Settings(_env_file=None).FIREBASE_CONFIG

    assert config.project_id == "hypermarket-hr"
    assert config.type == "service_account"
    certificate = config.credentials()
    assert certificate["private_key"] == "-----BEGIN KEY-----\nabc\n-----END KEY-----"
    assert certificate["client_email"] == "svc@hypermarket-hr.iam.gserviceaccount.com"
    assert certificate["token_uri"] == "https://oauth2.googleapis.com/token"


def test_firebase_config_defaults(monkeypatch):
    monkeypatch.delenv("FIREBASE_CONFIG__project_id", raising=False)
    assert Settings(_env_file=None).FIREBASE_CONFIG == FirebaseConfig()


@pytest.mark.parametrize("origins, expected", [
    ("*", ["*"]),
    ("https://hr.example.com, https://admin.example.com", ["https://hr.example.com", "https://admin.example.com"]),
    (["https://hr.example.com"], ["https://hr.example.com"]),
])
def test_cors_origins(origins, expected):
    assert Settings(_env_file=None, BACKEND_CORS_ORIGINS=origins).cors_origins == expected


def test_firestore_needs_a_project(monkeypatch):
    def no_app():
        raise ValueError("The default Firebase app does not exist.")

    monkeypatch.setattr(firebase.firebase_admin, "get_app", no_app)
    monkeypatch.setattr(firebase, "get_settings", lambda: Settings(_env_file=None, FIREBASE_CONFIG=FirebaseConfig()))

    with pytest.raises(RuntimeError):
        firebase._firebase_app()
    # nothing to close either
    firebase.close_firestore_client()
