"""Tests for secret masking in log records and settings fallbacks."""

from npb_sync.config.settings import AppSettings, settings
from npb_sync.logging.setup import sensitive_data_filter


def test_known_secrets_scrubbed_from_message():
    record = {
        "message": f"GET https://serpapi.com/search.json?api_key={settings.serpapi_key}&q=x",
        "extra": {},
    }
    assert sensitive_data_filter(record) is True
    assert settings.serpapi_key not in record["message"]
    assert "api_key=********" in record["message"]


def test_sensitive_extras_masked():
    record = {
        "message": "calling upstream",
        "extra": {"api_key": "abcdefghijklmnop", "query": "Yomiuri Giants standings 2025"},
    }
    sensitive_data_filter(record)
    assert record["extra"]["api_key"] == "abcd****mnop"
    assert record["extra"]["query"] == "Yomiuri Giants standings 2025"


def test_write_key_prefers_service_role():
    base = dict(
        supabase_url="https://test-project.supabase.co",
        supabase_key="anon",
        serpapi_key="serp",
    )
    assert AppSettings(**base, supabase_service_key=None).supabase_write_key == "anon"
    assert AppSettings(**base, supabase_service_key="service").supabase_write_key == "service"
